from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    assemblyai_api_key: str = ""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Audio storage: object path is "{audio_prefix}/{talk_id}.{audio_extension}"
    audio_bucket: str = "aibond-storage"
    audio_prefix: str = "audio-files"
    audio_extension: str = "webm"
    signed_url_expiry_seconds: int = 3600

    # Batch diarization
    diarization_max_wait_seconds: float = 300.0
    diarization_poll_interval_seconds: float = 3.0
    default_language: str = "ja"
    speaker_count: int = 2

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
