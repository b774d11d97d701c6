"""Application configuration from environment variables."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite:///./tunevault.db"

    # Redis (Celery broker/backend)
    redis_url: str = "redis://redis:6379/0"

    # Library roots
    music_path: str = "/music"            # Served as /music/<relative path>
    audiobook_path: str = "/audiobooks"   # Served as /audio/<relative path>
    cache_path: str = "/data/covers"      # Artwork cache, served as /covers/<name>

    # Scanning
    audio_extensions: list[str] = ["mp3", "flac", "ogg", "wav", "m4a"]
    unknown_label: str = "Unknown"  # Placeholder for missing artist/album tags

    # Fingerprinting
    fingerprint_window_bytes: int = 16 * 1024
    hash_sweep_delay_seconds: float = 5.0

    # Live watcher
    watch_debounce_seconds: float = 2.0
    watch_use_polling: bool = False  # Use polling for network mounts

    # Logging
    log_level: str = "info"
    log_path: str = ""

    class Config:
        env_file = (".env", "../.env")
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
