"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "VoicePrep"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Generation endpoint (OpenAI-style chat payload)
    llm_base_url: str = ""
    llm_api_key: str = ""
    llm_endpoint_template: str = "/serving-endpoints/{model}/invocations"
    llm_timeout_seconds: float = 60.0
    llm_max_tokens: int = 2048
    llm_temperature: float = 0.7

    # Candidate chain, tried in order. Each entry is an independent quota pool.
    generation_models_str: str = Field(
        default="gemini-2.5-flash-lite,gemini-2.5-flash,gemini-3-flash",
        validation_alias="generation_models",
    )

    # Whisper configuration (for STT)
    whisper_model: str = "whisper-base"
    whisper_api_url: str = ""  # If using API, otherwise local
    use_local_whisper: bool = True

    # TTS configuration (edge-tts)
    tts_voice: str = "professional"
    tts_rate: int = 24000

    # Interview settings
    candidate_name: str = "Candidate"
    feedback_pause_seconds: float = 3.0
    playback_speed: float = 1.0  # Multiplier on estimated speech time when no client plays audio
    finished_session_limit: int = 100  # Completed interviews kept for status and reports

    # External persistence backend; empty means in-memory
    persistence_base_url: str = ""
    persistence_token: str = ""

    # CORS - stored as comma-separated string in env
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def generation_models(self) -> list[str]:
        """Parse the model candidate chain from comma-separated string."""
        return _split_csv(self.generation_models_str)

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return _split_csv(self.cors_origins_str)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
