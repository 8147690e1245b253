"""Normalized calendar event data model."""

from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationError, model_validator

from ..utils.exceptions import EventParseError
from .calendar import CalendarSource


def _as_date_only(value: Any) -> Optional[date]:
    """Return the date when value is a date-only string or a plain date."""
    if isinstance(value, datetime):
        return None
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


class CalendarEvent(BaseModel):
    """Normalized event as returned by a calendar source."""

    start: datetime
    end: datetime
    all_day: bool = False
    summary: Optional[str] = Field(
        None, validation_alias=AliasChoices("summary", "message")
    )
    description: Optional[str] = None
    location: Optional[str] = None
    uid: Optional[str] = None

    model_config = {"frozen": True, "extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def _expand_date_only(cls, data: Any) -> Any:
        # Date-only bounds mean an all-day event starting at local midnight
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        date_only = False
        for name in ("start", "end"):
            day = _as_date_only(data.get(name))
            if day is not None:
                data[name] = datetime.combine(day, time())
                date_only = True
        if date_only:
            data.setdefault("all_day", True)
        return data

    @property
    def title(self) -> str:
        return self.summary or "(no title)"


class ResolvedEvent(BaseModel):
    """Event with local-aware bounds and the source it belongs to."""

    event: CalendarEvent
    source: CalendarSource
    start: datetime
    end: datetime

    model_config = {"frozen": True}

    @property
    def all_day(self) -> bool:
        return self.event.all_day

    @property
    def title(self) -> str:
        return self.event.title


def parse_events_by_source(
    payload: Optional[Mapping[str, Any]],
) -> dict[str, tuple[CalendarEvent, ...]]:
    """
    Normalize a fetch response into per-source event tuples.

    Args:
        payload: Mapping of source id to ``{"events": [...]}`` or a bare list

    Returns:
        Mapping of source id to a tuple of CalendarEvent

    Raises:
        EventParseError: If the payload or one of its events is malformed
    """
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise EventParseError(
            f"Expected a mapping of source id to events, got {type(payload).__name__}"
        )

    result: dict[str, tuple[CalendarEvent, ...]] = {}
    for source_id, body in payload.items():
        raw_events = body.get("events") if isinstance(body, Mapping) else body
        try:
            result[source_id] = tuple(
                ev if isinstance(ev, CalendarEvent) else CalendarEvent.model_validate(ev)
                for ev in (raw_events or [])
            )
        except (ValidationError, TypeError) as e:
            raise EventParseError(f"Invalid events for {source_id}: {e}") from e
    return result
