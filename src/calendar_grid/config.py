"""Configuration management for Calendar Grid application."""

from collections.abc import Mapping
from datetime import tzinfo
from pathlib import Path
from typing import Any, Literal, Optional

import pytz
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.calendar import CalendarSource
from .models.grid import WeekStart
from .utils.date_utils import clamp_number
from .utils.exceptions import ConfigurationError

load_dotenv()


class HomeAssistantConfig(BaseSettings):
    """Home Assistant connection used to fetch calendar events."""

    url: Optional[str] = Field(None, validation_alias="HA_URL")
    token: Optional[str] = Field(None, validation_alias="HA_TOKEN")
    timeout: float = Field(default=30.0, validation_alias="HA_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_parse_none_str="",  # Treat empty string as None
    )


class AppConfig(BaseSettings):
    """Application configuration."""

    ha: HomeAssistantConfig = Field(default_factory=HomeAssistantConfig)

    card_config_path: Path = Field(
        default=Path("card_config.yaml"), validation_alias="CARD_CONFIG_PATH"
    )

    # None means the local system time zone
    time_zone: Optional[str] = Field(default=None, validation_alias="TIME_ZONE")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_parse_none_str="",
    )

    @field_validator("time_zone")
    @classmethod
    def _known_zone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as e:
            raise ValueError(f"Unknown time zone: {value}") from e
        return value

    def get_tz(self) -> Optional[tzinfo]:
        """Configured pytz zone, or None for the system local zone."""
        return pytz.timezone(self.time_zone) if self.time_zone else None


class MarkerConfig(BaseModel):
    """Per-day marker display budget."""

    max: int = Field(default=2, ge=0)


class EventListConfig(BaseModel):
    """Selected-day event list options."""

    max_items: Optional[int] = None  # None = no limit
    show_count: bool = True
    show_more: bool = True

    @field_validator("max_items", mode="before")
    @classmethod
    def _clamp_max_items(cls, value: Any) -> Optional[int]:
        if value is None:
            return None
        limit = clamp_number(value, 1, 50, None)
        return None if limit is None else int(limit)


class NowConfig(BaseModel):
    """Highlighting of events that are currently running."""

    enabled: bool = False
    update_seconds: int = 30
    show_progress: bool = True
    show_text: bool = True
    text_mode: Literal["remaining", "elapsed", "both"] = "remaining"

    @field_validator("update_seconds", mode="before")
    @classmethod
    def _clamp_update_seconds(cls, value: Any) -> int:
        return int(clamp_number(value, 5, 300, 30))


class CardConfig(BaseModel):
    """Month card configuration loaded from YAML."""

    calendars: list[CalendarSource]
    start_weekday: WeekStart = WeekStart.MONDAY
    dots: MarkerConfig = Field(default_factory=MarkerConfig)
    events: EventListConfig = Field(default_factory=EventListConfig)
    now: NowConfig = Field(default_factory=NowConfig)

    model_config = {"extra": "ignore"}

    @field_validator("calendars")
    @classmethod
    def _check_calendars(cls, value: list[CalendarSource]) -> list[CalendarSource]:
        if not value:
            raise ValueError("`calendars` is required.")
        seen: set[str] = set()
        for source in value:
            if source.id in seen:
                raise ValueError(f"Duplicate calendar id: {source.id}")
            seen.add(source.id)
        return value

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "CardConfig":
        """
        Build and validate a card configuration.

        Args:
            data: Parsed configuration mapping

        Returns:
            Validated CardConfig

        Raises:
            ConfigurationError: If calendars are missing or any option is invalid
        """
        if not data or not data.get("calendars"):
            raise ConfigurationError("`calendars` is required.")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid card configuration: {e}") from e

    @property
    def week_starts_on_monday(self) -> bool:
        return self.start_weekday is WeekStart.MONDAY

    @property
    def marker_cap(self) -> int:
        return self.dots.max

    @property
    def source_ids(self) -> list[str]:
        return [source.id for source in self.calendars]

    def get_source(self, source_id: str) -> CalendarSource:
        for source in self.calendars:
            if source.id == source_id:
                return source
        raise ConfigurationError(f"Unknown calendar: {source_id}")


def load_card_config(config_path: Path) -> CardConfig:
    """
    Load the card configuration from a YAML file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if not config_path.exists():
        raise ConfigurationError(f"Card configuration not found: {config_path}")
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse {config_path}: {e}") from e
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{config_path} must contain a mapping")
    return CardConfig.from_mapping(data)


# Global config instance
config = AppConfig()
