"""Configuration management using pydantic-settings."""

import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_HOME = Path.home() / ".contacts2sheet"
SETTINGS_FILENAME = "settings.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Gemini configuration
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-3-flash-preview", alias="GEMINI_MODEL")

    # Local state
    home: Path = Field(default=DEFAULT_HOME, alias="CONTACTS2SHEET_HOME")
    log_level: str = Field(default="WARNING", alias="LOG_LEVEL")

    # Seconds to wait after posting to the webhook before reporting success
    confirm_delay: float = Field(default=1.5, alias="CONFIRM_DELAY")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class SheetSettings(BaseModel):
    """User-supplied sheet connection, persisted across sessions."""

    webhook_url: str = ""
    sheet_view_url: str = ""

    @property
    def is_connected(self) -> bool:
        return bool(self.webhook_url)


class SettingsStore:
    """JSON-file key-value store for SheetSettings."""

    def __init__(self, home: Path):
        self.path = Path(home) / SETTINGS_FILENAME

    def load(self) -> SheetSettings:
        """Load persisted settings. Missing or corrupt files give defaults."""
        if not self.path.exists():
            return SheetSettings()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return SheetSettings.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            return SheetSettings()

    def save(self, sheet_settings: SheetSettings) -> None:
        """Persist settings, creating the home directory if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(sheet_settings.model_dump_json(indent=2), encoding="utf-8")
        logger.info(f"Saved settings to {self.path}")
