"""Tests for the interview state machine."""

import asyncio

import pytest

from tests.conftest import CLOSURE_FEEDBACK, FailingAnswerStore, FakeBackend, FakeRecognizer
from voiceprep.core.errors import (
    AllModelsExhausted,
    EmptyAnswerError,
    PersistenceFailure,
    SessionNotFoundError,
    StateTransitionError,
)
from voiceprep.core.feedback_service import FeedbackService
from voiceprep.core.interview_orchestrator import InterviewOrchestrator
from voiceprep.core.model_caller import ModelCaller
from voiceprep.core.persistence import InMemorySessionStore
from voiceprep.core.speech_capture import SpeechCapture
from voiceprep.core.speech_playback import SpeechPlayback
from voiceprep.models.interview import InterviewPhase
from voiceprep.prompts.interviewer import InterviewerLines

WELCOME = InterviewPhase.WELCOME
LISTENING = InterviewPhase.LISTENING
EVALUATING = InterviewPhase.EVALUATING
COMPLETED = InterviewPhase.COMPLETED


def record_events(orchestrator: InterviewOrchestrator) -> dict[str, list]:
    events = {"phases": [], "answers": [], "errors": [], "complete": []}

    async def on_state_change(session_id, old, new):
        events["phases"].append((old, new, orchestrator.session.current_index))

    async def on_answer(session_id, record):
        events["answers"].append(record)

    async def on_error(session_id, error):
        events["errors"].append(error)

    async def on_complete(session_id, collection):
        events["complete"].append(collection)

    orchestrator.on_state_change(on_state_change)
    orchestrator.on_answer(on_answer)
    orchestrator.on_error(on_error)
    orchestrator.on_complete(on_complete)
    return events


class DisconnectingRecognizer(FakeRecognizer):
    """Recognizer whose first stop fails, like a client that went away."""

    def __init__(self):
        super().__init__()
        self.fail_next_stop = True

    async def stop(self) -> None:
        await super().stop()
        if self.fail_next_stop:
            self.fail_next_stop = False
            raise RuntimeError("client gone")


class BrokenAnswerStore(InMemorySessionStore):
    """Store whose per-answer save fails with a non-persistence error."""

    async def save_answer(self, *args, **kwargs) -> None:
        raise RuntimeError("connection reset")


async def test_closure_interview_end_to_end(build_orchestrator, closure_question, recognizer, sink, store):
    backend = FakeBackend({"model-a": f"```json\n{CLOSURE_FEEDBACK}\n```"})
    orchestrator = await build_orchestrator([closure_question], backend)
    events = record_events(orchestrator)

    await orchestrator.start()
    assert orchestrator.phase is LISTENING
    assert orchestrator.capture.is_listening

    recognizer.say("A closure is a function that remembers the variables")
    recognizer.say("from the scope where it was created")
    record = await orchestrator.advance()

    assert record.question_index == 0
    assert record.answer_text == (
        "A closure is a function that remembers the variables "
        "from the scope where it was created"
    )
    assert 0 <= record.feedback.score <= 10
    assert record.feedback.model_used == "model-a"

    assert events["phases"] == [
        (WELCOME, LISTENING, 0),
        (LISTENING, EVALUATING, 0),
        (EVALUATING, COMPLETED, 1),
    ]
    assert len(events["complete"]) == 1
    assert events["complete"][0][0]["userAnswer"] == record.answer_text
    assert events["complete"][0][0]["expectedAnswer"] == closure_question.reference_answer

    transcript = store.transcripts["session-1"]
    assert transcript["totalAnswers"] == 1
    assert transcript["transcript"][0]["score"] == 8
    assert store.answers["session-1"][0]["questionIndex"] == 0

    assert sink.spoken == [
        InterviewerLines.greeting("Alex", "Frontend Developer"),
        "Question 1. What is a closure?",
        InterviewerLines.EVALUATING,
        InterviewerLines.FEEDBACK_READY,
        InterviewerLines.CLOSING,
    ]
    assert orchestrator.session.completed_at is not None


async def test_two_questions_advance_in_order(build_orchestrator, two_questions, recognizer):
    backend = FakeBackend({"model-a": CLOSURE_FEEDBACK})
    orchestrator = await build_orchestrator(two_questions, backend)

    await orchestrator.start()
    recognizer.say("first answer")
    first = await orchestrator.advance()

    assert orchestrator.phase is LISTENING
    assert orchestrator.session.current_index == 1
    assert orchestrator.capture.answer_text == ""

    recognizer.say("second answer")
    second = await orchestrator.advance()

    assert (first.question_index, first.answer_text) == (0, "first answer")
    assert (second.question_index, second.answer_text) == (1, "second answer")
    assert orchestrator.phase is COMPLETED
    assert orchestrator.session.current_index == 2


async def test_empty_answer_leaves_state_unchanged(build_orchestrator, closure_question, store):
    backend = FakeBackend({"model-a": CLOSURE_FEEDBACK})
    orchestrator = await build_orchestrator([closure_question], backend)
    await orchestrator.start()

    with pytest.raises(EmptyAnswerError):
        await orchestrator.advance()

    assert orchestrator.phase is LISTENING
    assert orchestrator.session.current_index == 0
    assert orchestrator.session.answers == []
    assert orchestrator.capture.is_listening
    assert backend.calls == []
    assert "session-1" not in store.answers


async def test_interim_only_answer_is_recorded(build_orchestrator, closure_question, recognizer):
    orchestrator = await build_orchestrator([closure_question], FakeBackend({"model-a": CLOSURE_FEEDBACK}))
    await orchestrator.start()

    recognizer.say("it captures the outer scope", final=False)
    record = await orchestrator.advance()

    assert record.answer_text == "it captures the outer scope"


async def test_second_advance_while_evaluating_is_ignored(build_orchestrator, closure_question, recognizer):
    release = asyncio.Event()

    async def slow_reply(prompt):
        await release.wait()
        return CLOSURE_FEEDBACK

    backend = FakeBackend({"model-a": slow_reply})
    orchestrator = await build_orchestrator([closure_question], backend)
    await orchestrator.start()
    recognizer.say("my answer")

    first = asyncio.create_task(orchestrator.advance())
    await asyncio.sleep(0)
    assert orchestrator.phase is EVALUATING

    assert await orchestrator.advance() is None

    release.set()
    record = await first

    assert record is not None
    assert len(orchestrator.session.answers) == 1
    assert len(backend.calls) == 1


async def test_late_recognition_does_not_change_frozen_answer(build_orchestrator, closure_question, recognizer):
    orchestrator = await build_orchestrator([closure_question], FakeBackend({"model-a": CLOSURE_FEEDBACK}))
    await orchestrator.start()

    recognizer.say("final words")
    record = await orchestrator.advance()
    recognizer.say("spoken after advance")

    assert record.answer_text == "final words"
    assert orchestrator.session.answers[0].answer_text == "final words"


async def test_exhausted_models_record_answer_without_feedback(build_orchestrator, two_questions, recognizer, sink):
    backend = FakeBackend({})
    orchestrator = await build_orchestrator(two_questions, backend)
    events = record_events(orchestrator)
    await orchestrator.start()

    recognizer.say("an answer")
    record = await orchestrator.advance()

    assert record.feedback is None
    assert backend.models_called == ["model-a", "model-b", "model-c"]
    assert isinstance(events["errors"][0], AllModelsExhausted)
    assert InterviewerLines.FEEDBACK_UNAVAILABLE in sink.spoken
    assert orchestrator.phase is LISTENING
    assert orchestrator.session.current_index == 1


async def test_persistence_failure_does_not_stop_interview(build_orchestrator, two_questions, recognizer):
    failing_store = FailingAnswerStore()
    orchestrator = await build_orchestrator(
        two_questions,
        FakeBackend({"model-a": CLOSURE_FEEDBACK}),
        session_store=failing_store,
    )
    events = record_events(orchestrator)
    await orchestrator.start()

    recognizer.say("an answer")
    record = await orchestrator.advance()

    assert record.feedback.score == 8
    assert isinstance(events["errors"][0], PersistenceFailure)
    assert orchestrator.phase is LISTENING


async def test_failed_stop_returns_to_listening(build_orchestrator, two_questions):
    orchestrator = await build_orchestrator(two_questions, FakeBackend({"model-a": CLOSURE_FEEDBACK}))
    recognizer = DisconnectingRecognizer()
    orchestrator.capture = SpeechCapture(recognizer)
    events = record_events(orchestrator)
    await orchestrator.start()

    recognizer.say("an answer")
    with pytest.raises(RuntimeError):
        await orchestrator.advance()

    assert orchestrator.phase is LISTENING
    assert orchestrator.capture.is_listening
    assert orchestrator.session.answers == []
    assert events["phases"][-1] == (EVALUATING, LISTENING, 0)

    record = await orchestrator.advance()

    assert record.answer_text == "an answer"
    assert orchestrator.session.current_index == 1


async def test_unexpected_store_error_leaves_interview_endable(build_orchestrator, two_questions, recognizer):
    broken_store = BrokenAnswerStore()
    orchestrator = await build_orchestrator(
        two_questions,
        FakeBackend({"model-a": CLOSURE_FEEDBACK}),
        session_store=broken_store,
    )
    await orchestrator.start()

    recognizer.say("an answer")
    with pytest.raises(RuntimeError):
        await orchestrator.advance()

    assert orchestrator.phase is LISTENING
    assert orchestrator.session.answers == []

    await orchestrator.end()

    assert orchestrator.phase is COMPLETED
    assert broken_store.transcripts["session-1"]["totalAnswers"] == 0


async def test_end_completes_early_and_keeps_answers(build_orchestrator, two_questions, recognizer, store):
    orchestrator = await build_orchestrator(two_questions, FakeBackend({"model-a": CLOSURE_FEEDBACK}))
    events = record_events(orchestrator)
    await orchestrator.start()

    recognizer.say("first answer")
    await orchestrator.advance()
    recognizer.say("half an answer")
    await orchestrator.end()

    assert orchestrator.phase is COMPLETED
    assert not orchestrator.capture.is_listening
    assert len(orchestrator.session.answers) == 1
    assert store.transcripts["session-1"]["totalAnswers"] == 1
    assert len(events["complete"]) == 1

    with pytest.raises(StateTransitionError):
        await orchestrator.advance()
    with pytest.raises(StateTransitionError):
        await orchestrator.end()
    assert len(events["complete"]) == 1


async def test_start_twice_is_rejected(build_orchestrator, closure_question):
    orchestrator = await build_orchestrator([closure_question], FakeBackend({}))
    await orchestrator.start()

    with pytest.raises(StateTransitionError):
        await orchestrator.start()


async def test_advance_before_start_is_rejected(build_orchestrator, closure_question):
    orchestrator = await build_orchestrator([closure_question], FakeBackend({}))

    with pytest.raises(StateTransitionError):
        await orchestrator.advance()


async def test_no_questions_completes_immediately(build_orchestrator, store):
    orchestrator = await build_orchestrator([], FakeBackend({}))
    events = record_events(orchestrator)

    await orchestrator.start()

    assert orchestrator.phase is COMPLETED
    assert events["phases"] == [(WELCOME, COMPLETED, 0)]
    assert store.transcripts["session-1"]["totalAnswers"] == 0


async def test_failing_callback_does_not_break_flow(build_orchestrator, closure_question, recognizer):
    orchestrator = await build_orchestrator([closure_question], FakeBackend({"model-a": CLOSURE_FEEDBACK}))

    async def broken(*args):
        raise RuntimeError("listener bug")

    orchestrator.on_state_change(broken)
    orchestrator.on_answer(broken)
    await orchestrator.start()
    recognizer.say("answer")
    await orchestrator.advance()

    assert orchestrator.phase is COMPLETED


async def test_unknown_session_is_not_found(store, sink, recognizer):
    with pytest.raises(SessionNotFoundError):
        await InterviewOrchestrator.from_store(
            session_id="missing",
            store=store,
            feedback_service=FeedbackService(ModelCaller(FakeBackend({}), ["model-a"])),
            playback=SpeechPlayback(sink),
            capture=SpeechCapture(recognizer),
        )
