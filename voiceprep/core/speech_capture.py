"""
Speech Capture for VoicePrep

Wraps a continuous speech recognizer and accumulates the candidate's
answer. Recognition callbacks never touch the answer directly: they only
put TranscriptSegments on a queue, and the owner drains that queue
before it reads the answer. Stopping always drains, so nothing a late
callback delivers can change an answer after it has been frozen.

    IDLE --start()--> LISTENING --stop()--> IDLE
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Protocol

from voiceprep.core.audio_processor import AudioProcessor
from voiceprep.models.interview import (
    RecognitionEvent,
    RecognitionResult,
    TranscriptSegment,
)

logger = logging.getLogger(__name__)

RecognitionCallback = Callable[[RecognitionEvent], None]


class CaptureState(str, Enum):
    """Capture session states."""

    IDLE = "idle"
    LISTENING = "listening"


class SpeechRecognizer(Protocol):
    """A continuous recognizer that reports result sets through a callback."""

    async def start(self, on_event: RecognitionCallback) -> None:
        ...

    async def stop(self) -> None:
        ...


class SpeechCapture:
    """
    Restartable capture session.

    Finalized segments are space-joined into the answer; the latest
    interim hypothesis is kept separately and replaced, never appended.
    """

    def __init__(self, recognizer: SpeechRecognizer | None = None):
        self.recognizer = recognizer
        self.state = CaptureState.IDLE
        self._segments: asyncio.Queue[TranscriptSegment] = asyncio.Queue()
        self._finalized: list[str] = []
        self.interim = ""

    @property
    def is_listening(self) -> bool:
        return self.state is CaptureState.LISTENING

    @property
    def finalized_text(self) -> str:
        return " ".join(self._finalized)

    @property
    def answer_text(self) -> str:
        """Finalized text plus any trailing interim hypothesis."""
        parts = [*self._finalized, self.interim.strip()]
        return " ".join(part for part in parts if part).strip()

    # =========================================================================
    # SESSION CONTROL
    # =========================================================================

    async def start(self) -> None:
        """Begin listening. Accumulated text is kept; call reset() to clear it."""
        if self.is_listening:
            return

        self.state = CaptureState.LISTENING
        if self.recognizer:
            try:
                await self.recognizer.start(self.on_recognition)
            except Exception:
                self.state = CaptureState.IDLE
                raise
        logger.debug("Capture started")

    async def stop(self) -> None:
        """Stop listening and apply everything the recognizer delivered."""
        try:
            if self.is_listening and self.recognizer:
                await self.recognizer.stop()
        finally:
            self.state = CaptureState.IDLE
            self.drain()
        logger.debug("Capture stopped")

    def reset(self) -> None:
        """Clear the answer, the interim buffer and anything still queued."""
        while not self._segments.empty():
            self._segments.get_nowait()
        self._finalized = []
        self.interim = ""

    # =========================================================================
    # RECOGNITION EVENTS
    # =========================================================================

    def on_recognition(self, event: RecognitionEvent) -> None:
        """
        Recognizer callback.

        Scans the result set from ``result_index`` forward. Each final
        result becomes its own segment; the event's non-final results
        together form one interim hypothesis, queued after the finals.
        """
        if not self.is_listening:
            logger.debug("Dropping recognition event received while idle")
            return

        interim_parts: list[str] = []
        for result in event.results[event.result_index:]:
            if result.is_final:
                self._segments.put_nowait(TranscriptSegment(text=result.text, is_final=True))
            else:
                interim_parts.append(result.text)

        if interim_parts:
            self._segments.put_nowait(
                TranscriptSegment(text="".join(interim_parts), is_final=False)
            )

    def drain(self) -> int:
        """Apply all queued segments in order. Returns how many were applied."""
        applied = 0
        while not self._segments.empty():
            self._apply(self._segments.get_nowait())
            applied += 1
        return applied

    def _apply(self, segment: TranscriptSegment) -> None:
        if segment.is_final:
            text = segment.text.strip()
            if text:
                self._finalized.append(text)
            self.interim = ""
        else:
            self.interim = segment.text


class WhisperRecognizer:
    """
    Server-side recognizer.

    The client streams audio chunks; each chunk is transcribed with
    Whisper and reported as a final result. Chunks are transcribed one
    at a time, in arrival order.
    """

    def __init__(self, audio_processor: AudioProcessor, language: str = "en"):
        self.audio_processor = audio_processor
        self.language = language
        self._on_event: RecognitionCallback | None = None
        self._results: list[RecognitionResult] = []
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()

    @property
    def active(self) -> bool:
        return self._on_event is not None

    async def start(self, on_event: RecognitionCallback) -> None:
        self._on_event = on_event
        self._results = []

    async def stop(self) -> None:
        """Wait for in-flight chunks so their text lands before the answer is read."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._on_event = None

    async def accept_audio(self, audio_data: bytes) -> str:
        """
        Transcribe one chunk and report it.

        Returns:
            The chunk's transcript ("" when not listening or nothing was said)
        """
        if not self.active:
            logger.debug("Ignoring audio chunk while not listening")
            return ""

        task = asyncio.ensure_future(self._transcribe(audio_data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return await task

    async def _transcribe(self, audio_data: bytes) -> str:
        async with self._lock:
            text = await self.audio_processor.speech_to_text(audio_data, self.language)
            if text and self._on_event is not None:
                self._results.append(RecognitionResult(text=text, is_final=True))
                self._on_event(
                    RecognitionEvent(
                        result_index=len(self._results) - 1,
                        results=list(self._results),
                    )
                )
            return text


AsyncRecognitionControl = Callable[[bool], Awaitable[None]]


class RemoteRecognizer:
    """
    Recognizer running on the client (e.g. the browser's speech API).

    Start/stop are forwarded to the client through ``control``; result
    sets come back through ``deliver``.
    """

    def __init__(self, control: AsyncRecognitionControl):
        self.control = control
        self._on_event: RecognitionCallback | None = None

    async def start(self, on_event: RecognitionCallback) -> None:
        self._on_event = on_event
        await self.control(True)

    async def stop(self) -> None:
        await self.control(False)
        self._on_event = None

    def deliver(self, event: RecognitionEvent) -> None:
        if self._on_event is None:
            logger.debug("Dropping client recognition event while stopped")
            return
        self._on_event(event)
