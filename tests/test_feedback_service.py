"""Tests for answer evaluation."""

import pytest

from tests.conftest import CLOSURE_FEEDBACK, FakeBackend
from voiceprep.core.errors import AllModelsExhausted, InputValidationError
from voiceprep.core.feedback_service import FeedbackService
from voiceprep.core.model_caller import ModelCaller


def make_service(script: dict) -> tuple[FeedbackService, FakeBackend]:
    backend = FakeBackend(script)
    return FeedbackService(ModelCaller(backend, ["model-a", "model-b", "model-c"])), backend


async def test_evaluates_with_fallback_model():
    service, backend = make_service({
        "model-a": RuntimeError("429"),
        "model-b": RuntimeError("503"),
        "model-c": f"```json\n{CLOSURE_FEEDBACK}\n```",
    })

    feedback = await service.evaluate(
        question="What is a closure?",
        answer_text="A function that remembers its outer variables.",
        role="Frontend Developer",
        experience_level="2 years",
    )

    assert feedback.score == 8
    assert feedback.model_used == "model-c"
    assert backend.models_called == ["model-a", "model-b", "model-c"]


async def test_prompt_carries_question_answer_and_role():
    service, backend = make_service({"model-a": CLOSURE_FEEDBACK})

    await service.evaluate("What is a closure?", "It keeps scope.", "Frontend Developer", "2 years")

    prompt = backend.calls[0][1]
    assert "What is a closure?" in prompt
    assert "It keeps scope." in prompt
    assert "Frontend Developer" in prompt


async def test_prose_reply_uses_fallback_record():
    service, _ = make_service({"model-a": "Great answer, well done!"})

    feedback = await service.evaluate("Q?", "A.", "Role", "1 year")

    assert feedback.score == 5
    assert feedback.strengths == "Answer addresses the question at a basic level."
    assert feedback.model_used == "model-a"


async def test_exhausted_chain_propagates():
    service, _ = make_service({})

    with pytest.raises(AllModelsExhausted):
        await service.evaluate("Q?", "A.", "Role", "1 year")


@pytest.mark.parametrize("field", ["question", "answer_text", "role", "experience_level"])
async def test_blank_input_fails_before_any_call(field):
    service, backend = make_service({"model-a": CLOSURE_FEEDBACK})
    kwargs = {
        "question": "Q?",
        "answer_text": "A.",
        "role": "Role",
        "experience_level": "1 year",
    }
    kwargs[field] = "   "

    with pytest.raises(InputValidationError):
        await service.evaluate(**kwargs)
    assert backend.calls == []
