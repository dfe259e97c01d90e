"""
Session registry

Keeps one InterviewOrchestrator per session id. Every orchestrator gets
its own SpeechCapture and SpeechPlayback; nothing speech-related is
shared between sessions.

Completed interviews leave the live map and are kept, up to a limit,
only so their status and report can still be read.
"""

import logging
from collections import OrderedDict

from voiceprep.core.audio_processor import AudioProcessor
from voiceprep.core.errors import SessionNotFoundError, StateTransitionError
from voiceprep.core.feedback_service import FeedbackService
from voiceprep.core.interview_orchestrator import InterviewOrchestrator
from voiceprep.core.persistence import SessionStore
from voiceprep.core.speech_capture import SpeechCapture, SpeechRecognizer, WhisperRecognizer
from voiceprep.core.speech_playback import SpeechPlayback, TimedPlaybackSink
from voiceprep.models.interview import InterviewPhase

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Live orchestrators, keyed by session id."""

    def __init__(
        self,
        store: SessionStore,
        feedback_service: FeedbackService,
        audio_processor: AudioProcessor | None = None,
        candidate_name: str = "Candidate",
        feedback_pause_seconds: float = 3.0,
        playback_speed: float = 1.0,
        finished_session_limit: int = 100,
    ):
        self.store = store
        self.feedback_service = feedback_service
        self.audio_processor = audio_processor
        self.candidate_name = candidate_name
        self.feedback_pause_seconds = feedback_pause_seconds
        self.playback_speed = playback_speed
        self.finished_session_limit = finished_session_limit

        self._orchestrators: dict[str, InterviewOrchestrator] = {}
        # Oldest first
        self._finished: OrderedDict[str, InterviewOrchestrator] = OrderedDict()

    @property
    def live_count(self) -> int:
        return len(self._orchestrators)

    def _lookup(self, session_id: str) -> InterviewOrchestrator | None:
        return self._orchestrators.get(session_id) or self._finished.get(session_id)

    def get(self, session_id: str) -> InterviewOrchestrator:
        """Orchestrator for a live or recently finished session, or SessionNotFoundError."""
        orchestrator = self._lookup(session_id)
        if orchestrator is None:
            raise SessionNotFoundError(session_id)
        return orchestrator

    async def get_or_create(self, session_id: str) -> InterviewOrchestrator:
        """
        Orchestrator for a session, creating a server-driven one if needed.

        Server-driven orchestrators recognize speech with Whisper from
        uploaded audio chunks and only simulate speaking time.
        """
        orchestrator = self._lookup(session_id)
        if orchestrator is not None:
            return orchestrator

        recognizer = WhisperRecognizer(self.audio_processor) if self.audio_processor else None
        return await self.create(
            session_id,
            playback=SpeechPlayback(TimedPlaybackSink(self.playback_speed)),
            recognizer=recognizer,
        )

    async def create(
        self,
        session_id: str,
        playback: SpeechPlayback,
        recognizer: SpeechRecognizer | None = None,
    ) -> InterviewOrchestrator:
        """
        Build a fresh orchestrator for a session.

        An orchestrator that has not started yet is replaced; one that is
        running or finished is kept and StateTransitionError is raised.
        """
        existing = self._lookup(session_id)
        if existing is not None and existing.phase != InterviewPhase.WELCOME:
            raise StateTransitionError(f"Session {session_id} is already {existing.phase.value}")

        orchestrator = await InterviewOrchestrator.from_store(
            session_id=session_id,
            store=self.store,
            feedback_service=self.feedback_service,
            playback=playback,
            capture=SpeechCapture(recognizer),
            candidate_name=self.candidate_name,
            feedback_pause_seconds=self.feedback_pause_seconds,
        )

        async def release(completed_session_id, collection):
            await self._release(orchestrator)

        orchestrator.on_complete(release)
        self._orchestrators[session_id] = orchestrator
        logger.info(f"Orchestrator created for session {session_id}")
        return orchestrator

    async def _release(self, orchestrator: InterviewOrchestrator) -> None:
        """Move a completed orchestrator out of the live map."""
        session_id = orchestrator.session_id
        if self._orchestrators.get(session_id) is not orchestrator:
            return

        del self._orchestrators[session_id]
        await orchestrator.shutdown()

        self._finished[session_id] = orchestrator
        while len(self._finished) > self.finished_session_limit:
            evicted, _ = self._finished.popitem(last=False)
            logger.info(f"Dropped finished session {evicted}")

        logger.info(f"Session {session_id} released ({self.live_count} live)")

    def whisper_recognizer(self, session_id: str) -> WhisperRecognizer:
        """The server-side recognizer of a session, for audio upload."""
        recognizer = self.get(session_id).capture.recognizer
        if not isinstance(recognizer, WhisperRecognizer):
            raise StateTransitionError(f"Session {session_id} does not accept uploaded audio")
        return recognizer

    async def close(self) -> None:
        for orchestrator in list(self._orchestrators.values()):
            await orchestrator.shutdown()
        self._orchestrators.clear()
        self._finished.clear()
