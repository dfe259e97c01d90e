"""
API Dependencies

Provides dependency injection for API endpoints.
Manages singleton instances of core components.
"""

from voiceprep.api.registry import SessionRegistry
from voiceprep.config.settings import get_settings
from voiceprep.core.audio_processor import AudioProcessor
from voiceprep.core.feedback_service import FeedbackService
from voiceprep.core.generation_client import GenerationClient
from voiceprep.core.model_caller import ModelCaller
from voiceprep.core.persistence import HttpSessionStore, InMemorySessionStore, SessionStore
from voiceprep.core.question_generator import QuestionGenerationService
from voiceprep.core.report_generator import ReportGenerator


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_generation_client: GenerationClient | None = None
_model_caller: ModelCaller | None = None
_audio_processor: AudioProcessor | None = None
_store: SessionStore | None = None
_registry: SessionRegistry | None = None


def get_generation_client() -> GenerationClient:
    """Get the generation endpoint client singleton."""
    global _generation_client

    if _generation_client is None:
        _generation_client = GenerationClient(get_settings())

    return _generation_client


def get_model_caller() -> ModelCaller:
    """Get the model chain singleton, built from the configured candidates."""
    global _model_caller

    if _model_caller is None:
        _model_caller = ModelCaller(
            backend=get_generation_client(),
            models=get_settings().generation_models,
        )

    return _model_caller


def get_feedback_service() -> FeedbackService:
    return FeedbackService(get_model_caller())


def get_question_service() -> QuestionGenerationService:
    return QuestionGenerationService(get_model_caller())


def get_report_generator() -> ReportGenerator:
    return ReportGenerator()


def get_audio_processor() -> AudioProcessor:
    """Get the audio processor singleton."""
    global _audio_processor

    if _audio_processor is None:
        _audio_processor = AudioProcessor()

    return _audio_processor


def get_store() -> SessionStore:
    """
    Get the session store singleton.

    Uses the HTTP backend when PERSISTENCE_BASE_URL is set, otherwise
    keeps sessions in memory.
    """
    global _store

    if _store is None:
        settings = get_settings()
        if settings.persistence_base_url:
            _store = HttpSessionStore(settings.persistence_base_url, settings.persistence_token)
        else:
            _store = InMemorySessionStore()

    return _store


def get_registry() -> SessionRegistry:
    """Get the session registry singleton."""
    global _registry

    if _registry is None:
        settings = get_settings()
        _registry = SessionRegistry(
            store=get_store(),
            feedback_service=get_feedback_service(),
            audio_processor=get_audio_processor(),
            candidate_name=settings.candidate_name,
            feedback_pause_seconds=settings.feedback_pause_seconds,
            playback_speed=settings.playback_speed,
            finished_session_limit=settings.finished_session_limit,
        )

    return _registry


async def cleanup():
    """Cleanup resources on shutdown."""
    global _generation_client, _model_caller, _audio_processor, _store, _registry

    if _registry:
        await _registry.close()
        _registry = None

    if _audio_processor:
        await _audio_processor.close()
        _audio_processor = None

    if _generation_client:
        await _generation_client.close()
        _generation_client = None

    if isinstance(_store, HttpSessionStore):
        await _store.close()

    _store = None
    _model_caller = None
