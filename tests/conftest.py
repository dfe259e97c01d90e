"""Shared fakes and fixtures."""

import asyncio
import json
from typing import Callable

import pytest

from voiceprep.core.feedback_service import FeedbackService
from voiceprep.core.interview_orchestrator import InterviewOrchestrator
from voiceprep.core.model_caller import ModelCaller
from voiceprep.core.persistence import InMemorySessionStore
from voiceprep.core.speech_capture import SpeechCapture
from voiceprep.core.speech_playback import SpeechPlayback, Utterance
from voiceprep.models.interview import (
    RecognitionEvent,
    RecognitionResult,
    SessionContext,
)
from voiceprep.models.question import Question

CLOSURE_FEEDBACK = json.dumps({
    "score": 8,
    "strengths": "Correctly explains captured variables.",
    "improvements": "Add a concrete example.",
    "idealAnswerHint": "Mention lexical scope and a counter example.",
})


class FakeBackend:
    """
    Generation backend driven by a script.

    ``script`` maps model id to a reply: a string, an exception instance
    to raise, or a callable taking the prompt.
    """

    def __init__(self, script: dict):
        self.script = script
        self.calls: list[tuple[str, str]] = []

    async def generate(self, model_id: str, prompt: str) -> str:
        self.calls.append((model_id, prompt))
        reply = self.script.get(model_id, RuntimeError(f"unknown model {model_id}"))
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(prompt)
            if asyncio.iscoroutine(reply):
                reply = await reply
        return reply

    @property
    def models_called(self) -> list[str]:
        return [model for model, _ in self.calls]


class FakeRecognizer:
    """Recognizer whose results are pushed by the test."""

    def __init__(self):
        self.on_event: Callable | None = None
        self.results: list[RecognitionResult] = []
        self.starts = 0
        self.stops = 0

    async def start(self, on_event) -> None:
        self.on_event = on_event
        self.results = []
        self.starts += 1

    async def stop(self) -> None:
        self.stops += 1

    def say(self, text: str, final: bool = True) -> None:
        """Emit a result; an interim replaces a trailing interim."""
        if self.results and not self.results[-1].is_final:
            self.results.pop()
        self.results.append(RecognitionResult(text=text, is_final=final))
        if self.on_event is not None:
            self.on_event(
                RecognitionEvent(result_index=len(self.results) - 1, results=list(self.results))
            )


class RecordingSink:
    """Playback sink that records what was said and returns immediately."""

    def __init__(self):
        self.spoken: list[str] = []

    async def play(self, utterance: Utterance) -> None:
        self.spoken.append(utterance.text)
        await asyncio.sleep(0)


class FailingAnswerStore(InMemorySessionStore):
    """Store whose per-answer save always fails."""

    async def save_answer(self, *args, **kwargs) -> None:
        from voiceprep.core.errors import PersistenceFailure

        raise PersistenceFailure("backend unavailable")


@pytest.fixture
def closure_question() -> Question:
    return Question(
        id="q1",
        text="What is a closure?",
        reference_answer="A function bundled with its lexical environment.",
    )


@pytest.fixture
def two_questions() -> list[Question]:
    return [
        Question(id="q1", text="What is a closure?", reference_answer="A function with its scope."),
        Question(id="q2", text="What is event bubbling?", reference_answer="Events propagate upward."),
    ]


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def build_orchestrator(recognizer, sink, store):
    """Factory: register a session and build its orchestrator."""

    async def build(
        questions: list[Question],
        backend: FakeBackend,
        models: list[str] | None = None,
        session_store: InMemorySessionStore | None = None,
    ) -> InterviewOrchestrator:
        target = session_store or store
        target.add_session(
            SessionContext(
                session_id="session-1",
                questions=questions,
                role="Frontend Developer",
                experience_level="2 years",
                topics="JavaScript",
            )
        )
        caller = ModelCaller(backend, models or ["model-a", "model-b", "model-c"])
        return await InterviewOrchestrator.from_store(
            session_id="session-1",
            store=target,
            feedback_service=FeedbackService(caller),
            playback=SpeechPlayback(sink),
            capture=SpeechCapture(recognizer),
            candidate_name="Alex",
            feedback_pause_seconds=0,
        )

    return build
