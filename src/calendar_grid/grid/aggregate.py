"""Per-day marker and selected-day event aggregation."""

from collections.abc import Sequence, Set
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional

from ..models.calendar import CalendarSource
from ..models.event import ResolvedEvent
from ..utils.date_utils import date_only_key, day_start, intervals_overlap, to_local
from .cache import CacheEntry


@dataclass
class AggregationResult:
    """Markers per day key and the events of the selected day."""

    day_markers: dict[str, frozenset[str]] = field(default_factory=dict)
    selected_events: list[ResolvedEvent] = field(default_factory=list)


def _priority_key(source: CalendarSource) -> tuple[bool, int]:
    # Missing priority sorts after every explicit one
    return (source.priority is None, source.priority or 0)


class OverlapAggregator:
    """Aggregate cached events over the grid for the configured sources."""

    def __init__(self, sources: Sequence[CalendarSource], tz: Optional[tzinfo] = None):
        """
        Initialize aggregator.

        Args:
            sources: Configured sources in declaration order
            tz: Local zone (None for the system local zone)
        """
        self.sources = tuple(sources)
        self.tz = tz

    def aggregate(
        self,
        entry: Optional[CacheEntry],
        enabled: Set[str],
        selected_day: date,
    ) -> AggregationResult:
        """
        Compute day markers and the selected day's events.

        Args:
            entry: Cache entry for the visible range (None renders empty)
            enabled: Currently enabled source ids
            selected_day: Day whose events are listed

        Returns:
            AggregationResult; selected events sorted by start, stable on
            source declaration order
        """
        result = AggregationResult()
        if entry is None:
            return result

        if isinstance(selected_day, datetime):
            selected_day = to_local(selected_day, self.tz).date()
        selected_start = day_start(selected_day, self.tz)
        selected_end = day_start(selected_day + timedelta(days=1), self.tz)
        range_start, range_end = entry.grid_range.bounds(self.tz)

        markers: dict[str, set[str]] = {}
        for source in self.sources:
            if source.id not in enabled:
                continue

            for event in entry.events_for(source.id):
                ev_start = to_local(event.start, self.tz)
                ev_end = to_local(event.end, self.tz)

                clamp_start = max(ev_start, range_start)
                clamp_end = min(ev_end, range_end)

                # Walk calendar dates; midnight may not exist on DST start days
                day = clamp_start.date()
                window_start = day_start(day, self.tz)
                while window_start < clamp_end:
                    next_day = day + timedelta(days=1)
                    window_end = day_start(next_day, self.tz)
                    if intervals_overlap(ev_start, ev_end, window_start, window_end):
                        markers.setdefault(date_only_key(day), set()).add(source.id)
                    day, window_start = next_day, window_end

                if intervals_overlap(ev_start, ev_end, selected_start, selected_end):
                    result.selected_events.append(
                        ResolvedEvent(event=event, source=source, start=ev_start, end=ev_end)
                    )

        result.selected_events.sort(key=lambda item: item.start)
        result.day_markers = {key: frozenset(ids) for key, ids in markers.items()}
        return result

    def top_sources(
        self,
        day_key: str,
        day_markers: dict[str, frozenset[str]],
        enabled: Set[str],
        limit: Optional[int] = None,
    ) -> list[CalendarSource]:
        """
        Pick the sources to show as markers for one day.

        Enabled sources marking the day are ordered by ascending priority
        (missing priority last, ties in declaration order) and cut to ``limit``.
        """
        marked = day_markers.get(day_key)
        if not marked:
            return []
        candidates = [s for s in self.sources if s.id in enabled and s.id in marked]
        candidates.sort(key=_priority_key)
        if limit is None:
            return candidates
        return candidates[:limit]
