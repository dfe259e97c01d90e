"""
Interview Orchestrator - State machine for the interview turn-taking.

This is the central coordinator for one interview session. It asks each
question aloud, captures the spoken answer, has it evaluated, and hands
the collected feedback to persistence when the last question is done.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable

from voiceprep.core.errors import (
    AllModelsExhausted,
    EmptyAnswerError,
    InputValidationError,
    InterviewError,
    PersistenceFailure,
    StateTransitionError,
)
from voiceprep.core.feedback_service import FeedbackService
from voiceprep.core.persistence import SessionStore
from voiceprep.core.speech_capture import SpeechCapture
from voiceprep.core.speech_playback import SpeechPlayback
from voiceprep.models.feedback import FeedbackRecord
from voiceprep.models.interview import AnswerRecord, InterviewPhase, InterviewSession
from voiceprep.prompts.interviewer import InterviewerLines

logger = logging.getLogger(__name__)

StateChangeCallback = Callable[[str, InterviewPhase, InterviewPhase], Awaitable[None]]
AnswerCallback = Callable[[str, AnswerRecord], Awaitable[None]]
ErrorCallback = Callable[[str, InterviewError], Awaitable[None]]
CompleteCallback = Callable[[str, list[dict[str, Any]]], Awaitable[None]]


class InterviewOrchestrator:
    """
    Runs one interview using a state machine pattern.

    States:
        WELCOME → LISTENING(0) → EVALUATING(0) → LISTENING(1) → ... → EVALUATING(n-1)
                                                                          ↓
                                                                      COMPLETED

    The orchestrator owns its session, its capture and its playback; it
    is never shared between sessions. advance() flips the phase to
    EVALUATING before its first await, so a second advance() arriving
    while the first is still evaluating is ignored.
    """

    # Valid state transitions
    # Note: COMPLETED is reachable from WELCOME and LISTENING to support user-initiated ending
    VALID_TRANSITIONS: dict[InterviewPhase, list[InterviewPhase]] = {
        InterviewPhase.WELCOME: [InterviewPhase.LISTENING, InterviewPhase.COMPLETED],
        InterviewPhase.LISTENING: [InterviewPhase.EVALUATING, InterviewPhase.COMPLETED],
        InterviewPhase.EVALUATING: [InterviewPhase.LISTENING, InterviewPhase.COMPLETED],
        InterviewPhase.COMPLETED: [],  # Terminal state
    }

    def __init__(
        self,
        session: InterviewSession,
        feedback_service: FeedbackService,
        playback: SpeechPlayback,
        capture: SpeechCapture,
        store: SessionStore,
        feedback_pause_seconds: float = 3.0,
    ):
        """
        Initialize the orchestrator with its collaborators.

        Args:
            session: The session to run; must be in WELCOME
            feedback_service: Scores each answer
            playback: Speaks for the interviewer
            capture: Collects the candidate's answer
            store: Answer and completion persistence
            feedback_pause_seconds: Pause after announcing feedback
        """
        if not session.role.strip() or not session.experience_level.strip():
            raise InputValidationError("Session needs a role and an experience level")

        self.session = session
        self.feedback_service = feedback_service
        self.playback = playback
        self.capture = capture
        self.store = store
        self.feedback_pause_seconds = feedback_pause_seconds

        # Event callbacks
        self._state_change_callbacks: list[StateChangeCallback] = []
        self._answer_callbacks: list[AnswerCallback] = []
        self._error_callbacks: list[ErrorCallback] = []
        self._complete_callbacks: list[CompleteCallback] = []

    @classmethod
    async def from_store(
        cls,
        session_id: str,
        store: SessionStore,
        feedback_service: FeedbackService,
        playback: SpeechPlayback,
        capture: SpeechCapture,
        candidate_name: str = "Candidate",
        feedback_pause_seconds: float = 3.0,
    ) -> "InterviewOrchestrator":
        """Look the session up and build an orchestrator for it."""
        context = await store.get_session(session_id)
        session = InterviewSession(
            session_id=context.session_id,
            questions=context.questions,
            role=context.role,
            experience_level=context.experience_level,
            topics=context.topics,
            candidate_name=candidate_name,
        )
        return cls(
            session=session,
            feedback_service=feedback_service,
            playback=playback,
            capture=capture,
            store=store,
            feedback_pause_seconds=feedback_pause_seconds,
        )

    @property
    def phase(self) -> InterviewPhase:
        return self.session.phase

    @property
    def session_id(self) -> str:
        return self.session.session_id

    # =========================================================================
    # STATE MACHINE
    # =========================================================================

    async def _transition(self, new_phase: InterviewPhase) -> None:
        """
        Move to a new phase.

        The phase is updated before the first await, so callers can rely
        on it as a guard.

        Raises:
            StateTransitionError: If transition is invalid
        """
        old_phase = self.session.phase

        valid_next_phases = self.VALID_TRANSITIONS.get(old_phase, [])
        if new_phase not in valid_next_phases:
            raise StateTransitionError(
                f"Invalid transition from {old_phase.value} to {new_phase.value}"
            )

        self.session.phase = new_phase

        if new_phase == InterviewPhase.LISTENING and self.session.started_at is None:
            self.session.started_at = datetime.utcnow()
        elif new_phase == InterviewPhase.COMPLETED:
            self.session.completed_at = datetime.utcnow()

        logger.info(
            f"Session {self.session_id}: {old_phase.value} → {new_phase.value} "
            f"(question {self.session.current_index})"
        )
        await self._notify_state_change(old_phase, new_phase)

    # =========================================================================
    # INTERVIEW FLOW
    # =========================================================================

    async def start(self) -> None:
        """Greet the candidate, ask the first question and start listening."""
        if self.phase != InterviewPhase.WELCOME:
            raise StateTransitionError(f"Cannot start interview in phase: {self.phase.value}")

        if not self.session.questions:
            logger.warning(f"Session {self.session_id} has no questions, completing immediately")
            await self._complete()
            return

        await self._transition(InterviewPhase.LISTENING)
        await self.playback.speak(
            InterviewerLines.greeting(self.session.candidate_name, self.session.role)
        )
        if self.phase != InterviewPhase.LISTENING:
            return
        await self._ask_current_question()

    async def _ask_current_question(self) -> None:
        index = self.session.current_index
        question = self.session.questions[index]

        await self.playback.speak(InterviewerLines.question(index, question.text))

        # The user may have ended the interview while the question was being read
        if self.phase != InterviewPhase.LISTENING or self.session.current_index != index:
            return

        await self.capture.start()

    async def advance(self) -> AnswerRecord | None:
        """
        Freeze the current answer, evaluate it and move on.

        Returns:
            The new AnswerRecord, or None if an evaluation is already running

        Raises:
            EmptyAnswerError: If nothing has been said yet (phase is unchanged)
            StateTransitionError: If not currently listening

        Any other failure while evaluating puts the session back in
        LISTENING on the same question before it propagates.
        """
        if self.phase == InterviewPhase.EVALUATING:
            logger.info(f"Session {self.session_id}: advance ignored, already evaluating")
            return None
        if self.phase != InterviewPhase.LISTENING:
            raise StateTransitionError(f"Cannot advance in phase: {self.phase.value}")

        self.capture.drain()
        if not self.capture.answer_text:
            raise EmptyAnswerError("Please provide an answer before proceeding")

        await self._transition(InterviewPhase.EVALUATING)

        try:
            record = await self._record_answer()
        except Exception as e:
            logger.warning(f"Session {self.session_id}: advance failed, listening again: {e}")
            await self._resume_listening()
            raise

        await self.playback.speak(
            InterviewerLines.FEEDBACK_READY if record.feedback else InterviewerLines.FEEDBACK_UNAVAILABLE
        )
        if self.feedback_pause_seconds > 0:
            await asyncio.sleep(self.feedback_pause_seconds)

        self.capture.reset()
        has_next = self.session.has_next_question()
        self.session.current_index += 1

        if has_next:
            await self._transition(InterviewPhase.LISTENING)
            await self._ask_current_question()
        else:
            await self._complete()

        return record

    async def end(self) -> None:
        """
        End the interview early.

        Whatever is being said for the open question is discarded; answers
        already evaluated are kept and persisted.
        """
        if self.phase == InterviewPhase.EVALUATING:
            raise StateTransitionError("Cannot end the interview while an answer is being evaluated")
        if self.phase == InterviewPhase.COMPLETED:
            raise StateTransitionError("Interview already completed")

        self.playback.cancel()
        await self.capture.stop()
        self.capture.reset()
        await self._complete()

    async def shutdown(self) -> None:
        """Release speech resources without changing the interview phase."""
        self.playback.cancel()
        if self.capture.is_listening:
            await self.capture.stop()

    async def _complete(self) -> None:
        await self._transition(InterviewPhase.COMPLETED)
        await self.playback.speak(InterviewerLines.CLOSING)

        collection = self.session.feedback_collection()
        try:
            await self.store.save_transcript(
                session_id=self.session_id,
                feedback_collection=collection,
                completed_at=self.session.completed_at,
                total_answers=len(self.session.answers),
            )
        except PersistenceFailure as e:
            logger.error(f"Session {self.session_id}: failed to save transcript: {e}")
            await self._notify_error(e)

        await self._notify_complete(collection)

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    async def _record_answer(self) -> AnswerRecord:
        """Freeze, evaluate and store the answer to the current question."""
        # Stop and drain before reading so no late recognition result is lost or added afterwards
        await self.capture.stop()
        answer_text = self.capture.answer_text
        if not answer_text:
            raise EmptyAnswerError("Please provide an answer before proceeding")

        index = self.session.current_index
        question = self.session.questions[index]

        await self.playback.speak(InterviewerLines.EVALUATING)

        feedback = await self._evaluate(question.text, answer_text)

        record = AnswerRecord(
            question_id=question.id,
            question_index=index,
            question_text=question.text,
            answer_text=answer_text,
            feedback=feedback,
        )
        self.session.answers.append(record)
        try:
            await self._persist_answer(record)
        except Exception:
            self.session.answers.remove(record)
            raise

        await self._notify_answer(record)
        return record

    async def _resume_listening(self) -> None:
        """Undo a failed advance: back to LISTENING on the same question, answer kept."""
        self.session.phase = InterviewPhase.LISTENING
        await self._notify_state_change(InterviewPhase.EVALUATING, InterviewPhase.LISTENING)
        try:
            await self.capture.start()
        except Exception as e:
            logger.error(f"Session {self.session_id}: could not restart capture: {e}")

    async def _evaluate(self, question_text: str, answer_text: str) -> FeedbackRecord | None:
        """Score the answer; None means feedback is unavailable."""
        try:
            return await self.feedback_service.evaluate(
                question=question_text,
                answer_text=answer_text,
                role=self.session.role,
                experience_level=self.session.experience_level,
            )
        except AllModelsExhausted as e:
            logger.error(f"Session {self.session_id}: feedback unavailable: {e}")
            await self._notify_error(e)
            return None

    async def _persist_answer(self, record: AnswerRecord) -> None:
        try:
            await self.store.save_answer(
                session_id=self.session_id,
                question_id=record.question_id,
                question_index=record.question_index,
                question_text=record.question_text,
                answer_text=record.answer_text,
                feedback=record.feedback,
            )
        except PersistenceFailure as e:
            # The interview goes on in memory; the user can still finish
            logger.error(f"Session {self.session_id}: failed to save answer {record.question_index}: {e}")
            await self._notify_error(e)

    def status(self) -> dict[str, Any]:
        """Snapshot for API consumers."""
        self.capture.drain()
        question = self.session.get_current_question()
        return {
            "session_id": self.session_id,
            "phase": self.phase.value,
            "current_index": self.session.current_index,
            "total_questions": self.session.question_count,
            "current_question": question.text if question else None,
            "current_answer": self.capture.answer_text,
            "answers_recorded": len(self.session.answers),
            "duration_seconds": self.session.get_duration_seconds(),
        }

    # =========================================================================
    # EVENT CALLBACKS
    # =========================================================================

    def on_state_change(self, callback: StateChangeCallback) -> None:
        """Register a callback for phase changes."""
        self._state_change_callbacks.append(callback)

    def on_answer(self, callback: AnswerCallback) -> None:
        """Register a callback for recorded answers."""
        self._answer_callbacks.append(callback)

    def on_error(self, callback: ErrorCallback) -> None:
        """Register a callback for errors the interview recovers from."""
        self._error_callbacks.append(callback)

    def on_complete(self, callback: CompleteCallback) -> None:
        """Register a callback for the final feedback collection."""
        self._complete_callbacks.append(callback)

    async def _notify_state_change(self, old_phase: InterviewPhase, new_phase: InterviewPhase) -> None:
        for callback in self._state_change_callbacks:
            try:
                await callback(self.session_id, old_phase, new_phase)
            except Exception as e:
                logger.error(f"State change callback error: {e}")

    async def _notify_answer(self, record: AnswerRecord) -> None:
        for callback in self._answer_callbacks:
            try:
                await callback(self.session_id, record)
            except Exception as e:
                logger.error(f"Answer callback error: {e}")

    async def _notify_error(self, error: InterviewError) -> None:
        for callback in self._error_callbacks:
            try:
                await callback(self.session_id, error)
            except Exception as e:
                logger.error(f"Error callback error: {e}")

    async def _notify_complete(self, collection: list[dict[str, Any]]) -> None:
        for callback in self._complete_callbacks:
            try:
                await callback(self.session_id, collection)
            except Exception as e:
                logger.error(f"Completion callback error: {e}")
