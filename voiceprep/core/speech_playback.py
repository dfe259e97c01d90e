"""
Speech Playback for VoicePrep

Text-to-speech as an awaitable action. At most one utterance is active:
starting a new one cancels the previous one, and the previous caller's
speak() then returns False. Callers must treat playback as sequential.
"""

import asyncio
import logging
from typing import Any, Protocol
from uuid import uuid4

from pydantic import BaseModel, Field

from voiceprep.core.audio_processor import AudioProcessor, estimate_duration

logger = logging.getLogger(__name__)


class Utterance(BaseModel):
    """One thing the interviewer says."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    text: str
    audio: dict[str, Any] | None = None

    @property
    def duration_seconds(self) -> float:
        if self.audio and self.audio.get("duration_seconds"):
            return float(self.audio["duration_seconds"])
        return estimate_duration(self.text)


class PlaybackSink(Protocol):
    """Plays an utterance; returning means the utterance has ended."""

    async def play(self, utterance: Utterance) -> None:
        ...


class TimedPlaybackSink:
    """Sink with no audio device: waits as long as the utterance would take to say."""

    def __init__(self, speed: float = 1.0):
        self.speed = speed

    async def play(self, utterance: Utterance) -> None:
        await asyncio.sleep(utterance.duration_seconds * self.speed)


class SpeechPlayback:
    """Single-utterance speech output."""

    def __init__(
        self,
        sink: PlaybackSink,
        audio_processor: AudioProcessor | None = None,
    ):
        """
        Args:
            sink: Where synthesized utterances are played
            audio_processor: TTS engine; without one, utterances carry text only
        """
        self.sink = sink
        self.audio_processor = audio_processor
        self._current: asyncio.Task | None = None

    @property
    def speaking(self) -> bool:
        return self._current is not None and not self._current.done()

    def cancel(self) -> None:
        """Cancel the active utterance, if any."""
        if self.speaking:
            self._current.cancel()

    async def speak(self, text: str) -> bool:
        """
        Say something and wait until it is over.

        Returns:
            True if the utterance finished, False if it was cancelled or failed
        """
        self.cancel()
        if not text or not text.strip():
            return True

        utterance = Utterance(text=text)
        task = asyncio.ensure_future(self._play(utterance))
        self._current = task

        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._current is task:
                self._current = None

        if task.cancelled():
            logger.info(f"Utterance {utterance.id} interrupted")
            return False

        error = task.exception()
        if error is not None:
            logger.error(f"Playback of utterance {utterance.id} failed: {error}")
            return False

        return True

    async def _play(self, utterance: Utterance) -> None:
        if self.audio_processor:
            try:
                utterance.audio = await self.audio_processor.text_to_speech(utterance.text)
            except Exception as e:
                logger.warning(f"TTS failed for utterance {utterance.id}, sending text only: {e}")
        logger.debug(f"Speaking: {utterance.text[:80]}")
        await self.sink.play(utterance)
