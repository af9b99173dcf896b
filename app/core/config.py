from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.domain.models import DurationWindow


class Secrets(BaseSettings):
    """Secrets configuration, loaded from the environment or a secrets management service."""

    model_config = SettingsConfigDict(
        env_prefix="CLIPJURY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    admin_secret: str = Field(default="change-me", description="Shared secret for the moderation query gate.")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Secrets":
        return cls()


class Settings(BaseSettings):
    """Centralised runtime configuration for the clipjury service."""

    model_config = SettingsConfigDict(
        env_prefix="CLIPJURY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "clipjury API"
    environment: str = Field(default="development", description="Deployment environment label.")
    version: str = Field(default="0.1.0", description="API version for metadata and OpenAPI.")
    log_level: str = Field(default="info")

    data_dir: Path = Field(default_factory=lambda: Path("data"), description="Directory holding submissions.json.")
    upload_dir: Path = Field(
        default_factory=lambda: Path("public") / "uploads",
        description="Flat directory for uploaded media and derived thumbnails.",
    )
    public_prefix: str = Field(default="/uploads", description="Locator prefix under which blobs are published.")

    min_duration_s: float = Field(default=60.0, ge=0, description="Shortest admissible submission, inclusive.")
    max_duration_s: float = Field(default=120.0, ge=0, description="Longest admissible submission, inclusive.")

    ffmpeg_path: str = Field(default="ffmpeg")
    ffprobe_path: str = Field(default="ffprobe")
    probe_timeout_s: float = Field(default=30.0, gt=0)
    thumbnail_timeout_s: float = Field(default=60.0, gt=0)

    thumbnail_wide_size: tuple[int, int] = Field(default=(1280, 720))
    thumbnail_square_size: tuple[int, int] = Field(default=(600, 600))
    thumbnail_offset_fraction: float = Field(default=0.5, ge=0.0, le=1.0)

    artist_max_length: int = Field(default=100, ge=1)
    title_max_length: int = Field(default=140, ge=1)

    max_upload_size_bytes: int = Field(default=200 * 1024 * 1024, description="Hard limit for intake uploads.")
    moderation_allow_retransition: bool = Field(
        default=False,
        description="Allow approve/reject on records that already left the pending state.",
    )

    secrets: Secrets = Field(default_factory=Secrets, description="Holds sensitive configuration.")

    @model_validator(mode="after")
    def _check_window(self) -> "Settings":
        if self.min_duration_s > self.max_duration_s:
            raise ValueError("min_duration_s must not exceed max_duration_s")
        return self

    @property
    def environment_lower(self) -> str:
        return self.environment.lower()

    @property
    def records_path(self) -> Path:
        return self.data_dir / "submissions.json"

    @property
    def duration_window(self) -> DurationWindow:
        return DurationWindow(min_s=self.min_duration_s, max_s=self.max_duration_s)


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env", override=False)

    _ENV_ALIAS_MAP = {
        "CLIPJURY_ENV": "CLIPJURY_ENVIRONMENT",
        "CLIPJURY_MIN_SEC": "CLIPJURY_MIN_DURATION_S",
        "CLIPJURY_MAX_SEC": "CLIPJURY_MAX_DURATION_S",
    }

    for source, target in _ENV_ALIAS_MAP.items():
        value = os.getenv(source)
        if value:
            os.environ[target] = value

    settings = Settings()

    secrets = Secrets.from_settings(settings)

    if settings.environment_lower == "production" and secrets.admin_secret == "change-me":
        raise ValueError("Production environment must have a non-default admin secret.")

    settings.secrets = secrets
    return settings


__all__ = ["Settings", "Secrets", "get_settings"]
