"""Tests for question generation and concept explanation."""

import json

import pytest

from tests.conftest import FakeBackend
from voiceprep.core.errors import InputValidationError, ParseFailure
from voiceprep.core.model_caller import ModelCaller
from voiceprep.core.question_generator import QuestionGenerationService

QUESTIONS = json.dumps([
    {"question": "What is a closure?", "answer": "A function with its scope."},
    {"question": "What is hoisting?", "answer": "Declarations move to the top."},
    {"question": "What is the event loop?", "answer": "It schedules callbacks."},
])


def make_service(reply) -> tuple[QuestionGenerationService, FakeBackend]:
    backend = FakeBackend({"model-a": reply})
    return QuestionGenerationService(ModelCaller(backend, ["model-a"])), backend


async def test_generates_questions_in_order():
    service, backend = make_service(f"```json\n{QUESTIONS}\n```")

    questions = await service.generate("Frontend Developer", "2 years", "JavaScript", 3)

    assert [q.text for q in questions] == [
        "What is a closure?",
        "What is hoisting?",
        "What is the event loop?",
    ]
    assert [q.id for q in questions] == ["q1", "q2", "q3"]
    assert questions[0].reference_answer == "A function with its scope."
    assert "3" in backend.calls[0][1]


async def test_extra_questions_are_dropped():
    service, _ = make_service(QUESTIONS)

    questions = await service.generate("Frontend Developer", "2 years", "JavaScript", 2)

    assert len(questions) == 2


async def test_wrapped_question_list_is_accepted():
    service, _ = make_service(json.dumps({"questions": json.loads(QUESTIONS)}))

    questions = await service.generate("Frontend Developer", "2 years", "JavaScript", 3)

    assert len(questions) == 3


@pytest.mark.parametrize("reply", [
    "Here are some questions for you!",
    "[]",
    '[{"answer": "no question text"}]',
])
async def test_unusable_reply_raises_parse_failure(reply):
    service, _ = make_service(reply)

    with pytest.raises(ParseFailure):
        await service.generate("Frontend Developer", "2 years", "JavaScript", 3)


@pytest.mark.parametrize("args", [
    ("", "2 years", "JavaScript", 3),
    ("Frontend Developer", " ", "JavaScript", 3),
    ("Frontend Developer", "2 years", "", 3),
    ("Frontend Developer", "2 years", "JavaScript", 0),
    ("Frontend Developer", "2 years", "JavaScript", None),
])
async def test_missing_inputs_fail_before_any_call(args):
    service, backend = make_service(QUESTIONS)

    with pytest.raises(InputValidationError):
        await service.generate(*args)
    assert backend.calls == []


async def test_explains_concept():
    service, _ = make_service('```json\n{"title": "Closures", "explanation": "Functions keep scope."}\n```')

    explanation = await service.explain_concept("What is a closure?")

    assert explanation.title == "Closures"
    assert explanation.explanation == "Functions keep scope."


async def test_explanation_without_json_raises():
    service, _ = make_service("Closures are functions that keep their scope.")

    with pytest.raises(ParseFailure):
        await service.explain_concept("What is a closure?")
