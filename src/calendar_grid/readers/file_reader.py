"""Event reader backed by a local YAML file."""

import logging
from collections.abc import Sequence
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, Optional

import yaml

from ..models.event import CalendarEvent, parse_events_by_source
from ..utils.date_utils import intervals_overlap, to_local
from ..utils.exceptions import EventParseError, FetchFailedError, FetchUnavailableError
from .base import EventReader

logger = logging.getLogger(__name__)


class FileEventReader(EventReader):
    """Serve events from a YAML mapping of source id to event list."""

    def __init__(self, events_path: Path, tz: Optional[tzinfo] = None):
        self.events_path = events_path
        self.tz = tz
        self._events: Optional[dict[str, tuple[CalendarEvent, ...]]] = None

    def _load(self) -> dict[str, tuple[CalendarEvent, ...]]:
        if self._events is not None:
            return self._events
        if not self.events_path.exists():
            raise FetchUnavailableError(f"Events file not found: {self.events_path}")
        try:
            with open(self.events_path) as f:
                data = yaml.safe_load(f) or {}
            self._events = parse_events_by_source(data)
        except (yaml.YAMLError, EventParseError) as e:
            raise FetchFailedError(f"Failed to read {self.events_path}: {e}") from e
        logger.info(f"Loaded events for {len(self._events)} calendar(s) from {self.events_path}")
        return self._events

    async def fetch_events(
        self,
        source_ids: Sequence[str],
        start: datetime,
        end: datetime,
    ) -> dict[str, Any]:
        events = self._load()
        range_start = to_local(start, self.tz)
        range_end = to_local(end, self.tz)

        result = {}
        for source_id in source_ids:
            result[source_id] = {
                "events": [
                    ev
                    for ev in events.get(source_id, ())
                    if intervals_overlap(
                        to_local(ev.start, self.tz),
                        to_local(ev.end, self.tz),
                        range_start,
                        range_end,
                    )
                ]
            }
        return result
