"""Range-keyed store of fetched events."""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from types import MappingProxyType
from typing import Optional

import pytz
from pydantic import BaseModel, Field, field_validator

from ..models.event import CalendarEvent
from ..models.grid import GridRange
from ..utils.date_utils import date_only_key

logger = logging.getLogger(__name__)


class CacheEntry(BaseModel):
    """Events fetched for one grid range and enabled-source snapshot."""

    grid_range: GridRange
    sources: frozenset[str]
    events_by_source: Mapping[str, tuple[CalendarEvent, ...]] = Field(
        default_factory=dict, validate_default=True
    )
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(pytz.utc))

    model_config = {"frozen": True}

    @field_validator("events_by_source")
    @classmethod
    def _read_only(cls, value: Mapping[str, tuple]) -> Mapping[str, tuple]:
        # Stored entries must not change under readers
        return MappingProxyType(dict(value))

    def events_for(self, source_id: str) -> tuple[CalendarEvent, ...]:
        return self.events_by_source.get(source_id, ())


class RangeCache:
    """Insert-only cache of completed fetches.

    Tracking of in-flight fetches belongs to the caller; only completed
    results are stored here.
    """

    def __init__(self):
        self._entries: dict[str, CacheEntry] = {}

    @staticmethod
    def key(grid_range: GridRange, enabled_sources: Iterable[str]) -> str:
        """
        Build the cache key for a range and a set of enabled sources.

        Source ids are sorted so toggle order does not matter.
        """
        enabled = ",".join(sorted(set(enabled_sources)))
        return (
            f"{date_only_key(grid_range.start)}_{date_only_key(grid_range.end)}"
            f"|{enabled}"
        )

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry) -> CacheEntry:
        """
        Store an entry unless the key is already populated.

        Returns:
            The entry held for the key after the call
        """
        existing = self._entries.get(key)
        if existing is not None:
            logger.debug(f"Cache key {key} already populated, keeping existing entry")
            return existing
        self._entries[key] = entry
        logger.debug(f"Cached {sum(len(v) for v in entry.events_by_source.values())} events under {key}")
        return entry

    def evict(self, key: str) -> bool:
        """Drop an entry; eviction policy is up to the caller."""
        return self._entries.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
