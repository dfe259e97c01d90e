"""
Audio API endpoints

Handles:
- Text-to-speech generation
- Audio upload for server-side speech recognition
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from voiceprep.api.dependencies import get_audio_processor, get_registry
from voiceprep.api.registry import SessionRegistry
from voiceprep.core.audio_processor import AudioProcessor
from voiceprep.core.errors import InterviewError

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class TTSRequest(BaseModel):
    """Request for text-to-speech."""
    text: str
    voice: str | None = None


class TTSResponse(BaseModel):
    """Response with generated audio."""
    audio_base64: str
    format: str
    duration_seconds: float
    sample_rate: int


class ChunkResponse(BaseModel):
    """Response after recognizing one audio chunk."""
    transcript: str
    answer: str


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("/tts", response_model=TTSResponse)
async def text_to_speech(
    request: TTSRequest,
    processor: AudioProcessor = Depends(get_audio_processor),
) -> TTSResponse:
    """
    Convert text to speech.

    Returns base64-encoded audio data.
    """
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")

    try:
        result = await processor.text_to_speech(
            text=request.text,
            voice=request.voice,
        )
    except Exception as e:
        logger.error(f"TTS failed: {e}")
        raise HTTPException(status_code=500, detail=f"TTS failed: {e}")

    return TTSResponse(
        audio_base64=result["audio_data"],
        format=result["format"],
        duration_seconds=result["duration_seconds"],
        sample_rate=result["sample_rate"],
    )


@router.post("/{session_id}/chunk", response_model=ChunkResponse)
async def upload_chunk(
    session_id: str,
    audio: UploadFile = File(...),
    registry: SessionRegistry = Depends(get_registry),
) -> ChunkResponse:
    """
    Recognize one chunk of the candidate's answer.

    Chunks are only accepted while the session is listening; others are
    ignored and return an empty transcript.
    """
    try:
        recognizer = registry.whisper_recognizer(session_id)
        orchestrator = registry.get(session_id)
    except InterviewError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    audio_data = await audio.read()

    try:
        transcript = await recognizer.accept_audio(audio_data)
    except ImportError as e:
        raise HTTPException(status_code=503, detail=f"Speech recognition unavailable: {e}")
    except Exception as e:
        logger.error(f"Transcription failed for session {session_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Transcription failed: {e}")

    return ChunkResponse(
        transcript=transcript,
        answer=orchestrator.status()["current_answer"],
    )
