"""Application configuration with environment variable validation."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Engine configuration documents (defaults to the bundled data/ directory)
    config_dir: Optional[Path] = Field(
        default=None,
        validation_alias="FITMENT_CONFIG_DIR",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Flow sync store (TTL defaults to engine-settings sync.ttlHours)
    sync_ttl_seconds: Optional[int] = Field(
        default=None,
        validation_alias="SYNC_TTL_SECONDS",
    )
    sync_max_entries: int = Field(default=1024, validation_alias="SYNC_MAX_ENTRIES")

    # Admin endpoints (config reload); empty disables them
    api_admin_key: str = Field(default="", validation_alias="API_ADMIN_KEY")

    # CORS (comma-separated)
    allowed_origins: str = Field(default="*", validation_alias="ALLOWED_ORIGINS")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
