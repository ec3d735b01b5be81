from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "listing-media-sync"
    VERSION: str = "0.1.0"
    PORT: int = 8787
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    # Path to the SQLite catalog holding properties and their images.
    DB_PATH: Path = Path("listing_media.db")

    MLS_GRID_BASE_URL: str = ""
    MLS_GRID_ACCESS_TOKEN: str = ""
    MLS_MEDIA_CATEGORY: str = "Photo"
    MLS_MEDIA_BATCH_SIZE: int = 10
    MLS_MEDIA_RESULT_CAP: int = 500
    MLS_MEDIA_SYNC_INTERVAL_MINUTES: int = 0

    DRIVE_API_BASE_URL: str = "https://www.googleapis.com/drive/v3"
    DRIVE_API_KEY: str = ""
    DRIVE_RESULT_CAP: int = 1000

    SYNC_BATCH_DELAY_MS: int = 200
    HTTP_TIMEOUT_SECONDS: float = 30.0


settings = Settings()


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    base_url: str
    access_token: str

    def __repr__(self) -> str:
        return f"ProviderConfig(base_url={self.base_url!r}, access_token='***')"


@dataclass(frozen=True, slots=True)
class SyncOptions:
    batch_size: int = 10
    result_cap: int = 500
    batch_delay_seconds: float = 0.2
    category: str = "Photo"
    timeout_seconds: float = 30.0


def _require(values: dict[str, str]) -> None:
    missing = [name for name, value in values.items() if not (value or "").strip()]
    if missing:
        raise ConfigError(
            f"Missing required configuration: {', '.join(missing)}",
            missing=missing,
        )


def resolve_mls_config(source: Settings) -> ProviderConfig:
    """Validate MLS Grid credentials, raising ConfigError if any are absent."""
    _require(
        {
            "MLS_GRID_BASE_URL": source.MLS_GRID_BASE_URL,
            "MLS_GRID_ACCESS_TOKEN": source.MLS_GRID_ACCESS_TOKEN,
        }
    )
    return ProviderConfig(
        base_url=source.MLS_GRID_BASE_URL.strip().rstrip("/"),
        access_token=source.MLS_GRID_ACCESS_TOKEN.strip(),
    )


def resolve_drive_config(source: Settings) -> ProviderConfig:
    """Validate the cloud-folder API settings."""
    _require(
        {
            "DRIVE_API_BASE_URL": source.DRIVE_API_BASE_URL,
            "DRIVE_API_KEY": source.DRIVE_API_KEY,
        }
    )
    return ProviderConfig(
        base_url=source.DRIVE_API_BASE_URL.strip().rstrip("/"),
        access_token=source.DRIVE_API_KEY.strip(),
    )


def sync_options(source: Settings, *, result_cap: int | None = None) -> SyncOptions:
    batch_size = source.MLS_MEDIA_BATCH_SIZE
    cap = source.MLS_MEDIA_RESULT_CAP if result_cap is None else result_cap
    if batch_size < 1:
        raise ConfigError("MLS_MEDIA_BATCH_SIZE must be at least 1", missing=[])
    if cap < 1:
        raise ConfigError("Result cap must be at least 1", missing=[])
    return SyncOptions(
        batch_size=batch_size,
        result_cap=cap,
        batch_delay_seconds=max(source.SYNC_BATCH_DELAY_MS, 0) / 1000.0,
        category=source.MLS_MEDIA_CATEGORY,
        timeout_seconds=source.HTTP_TIMEOUT_SECONDS,
    )
