"""
Audio Processing Layer for VoicePrep

Handles:
- Speech-to-Text (STT) using Whisper
- Text-to-Speech (TTS) using Edge TTS

SpeechCapture and SpeechPlayback sit on top of this; this module only
turns bytes into text and text into bytes.
"""

import asyncio
import base64
import logging
import tempfile
from pathlib import Path
from typing import Any

import edge_tts
import httpx

from voiceprep.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 150

EDGE_VOICES = {
    "male": "en-US-GuyNeural",
    "female": "en-US-JennyNeural",
    "professional": "en-US-AriaNeural",
    "default": "en-US-GuyNeural",
}


def estimate_duration(text: str) -> float:
    """Rough spoken duration in seconds (150 words per minute)."""
    word_count = len(text.split())
    return word_count / WORDS_PER_MINUTE * 60


class AudioProcessor:
    """
    Central audio processing component.

    STT: Uses Whisper (local or API) for transcription
    TTS: Uses Edge TTS for synthesis
    """

    def __init__(self, settings: Settings | None = None):
        """Initialize audio processor."""
        self.settings = settings or get_settings()

        # Lazy-loaded model
        self._whisper_model = None

        # HTTP client for API-based services
        self.client = httpx.AsyncClient(timeout=60.0)

    async def close(self):
        """Clean up resources."""
        await self.client.aclose()

    # =========================================================================
    # SPEECH-TO-TEXT (Whisper)
    # =========================================================================

    async def speech_to_text(
        self,
        audio_data: bytes,
        language: str = "en"
    ) -> str:
        """
        Transcribe audio to text using Whisper.

        Args:
            audio_data: Raw audio bytes (WAV or similar)
            language: Language code

        Returns:
            Transcribed text
        """
        if self.settings.use_local_whisper:
            return await self._transcribe_local(audio_data, language)
        else:
            return await self._transcribe_api(audio_data, language)

    async def _transcribe_local(self, audio_data: bytes, language: str) -> str:
        """Transcribe using local Whisper model."""
        if self._whisper_model is None:
            await self._load_whisper_model()

        # Save audio to temp file
        with tempfile.NamedTemporaryFile(suffix=".wav", delete=False) as f:
            f.write(audio_data)
            temp_path = f.name

        try:
            # Run transcription in thread pool to avoid blocking
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(
                None,
                self._run_whisper_transcription,
                temp_path,
                language,
            )
        except Exception as e:
            logger.error(f"Local transcription failed: {e}")
            raise
        finally:
            Path(temp_path).unlink(missing_ok=True)

    async def _load_whisper_model(self):
        """Load Whisper model lazily."""
        try:
            import whisper
        except ImportError:
            logger.error("Whisper not installed. Install with: pip install 'voiceprep[whisper]'")
            raise

        model_name = self.settings.whisper_model.replace("whisper-", "")
        logger.info(f"Loading Whisper model: {model_name}")

        loop = asyncio.get_running_loop()
        self._whisper_model = await loop.run_in_executor(
            None,
            whisper.load_model,
            model_name,
        )

        logger.info("Whisper model loaded successfully")

    def _run_whisper_transcription(self, audio_path: str, language: str) -> str:
        """Run Whisper transcription (blocking, runs in thread pool)."""
        result = self._whisper_model.transcribe(
            audio_path,
            language=language,
            fp16=False,  # Use FP32 for better compatibility
        )
        return result.get("text", "").strip()

    async def _transcribe_api(self, audio_data: bytes, language: str) -> str:
        """Transcribe using Whisper API."""
        files = {
            "file": ("audio.wav", audio_data, "audio/wav"),
        }
        data = {
            "language": language,
        }

        try:
            response = await self.client.post(
                self.settings.whisper_api_url,
                files=files,
                data=data,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Whisper API error: {e}")
            raise

        result = response.json()
        return result.get("text", "").strip()

    # =========================================================================
    # TEXT-TO-SPEECH
    # =========================================================================

    async def text_to_speech(
        self,
        text: str,
        voice: str | None = None,
    ) -> dict[str, Any]:
        """
        Convert text to speech with Edge TTS.

        Args:
            text: Text to synthesize
            voice: Voice to use (optional, uses default)

        Returns:
            Dict with audio_data (base64), format, sample_rate and duration_seconds
        """
        voice = voice or self.settings.tts_voice
        edge_voice = EDGE_VOICES.get(voice, voice if "Neural" in voice else EDGE_VOICES["default"])

        communicate = edge_tts.Communicate(text, edge_voice)

        # Collect audio chunks
        audio_chunks = []
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                audio_chunks.append(chunk["data"])

        audio_data = b"".join(audio_chunks)

        return {
            "audio_data": base64.b64encode(audio_data).decode("utf-8"),
            "format": "mp3",
            "sample_rate": self.settings.tts_rate,
            "duration_seconds": estimate_duration(text),
        }
