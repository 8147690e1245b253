"""Presentation-independent view models for the month grid and event list."""

from collections.abc import Sequence, Set
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Optional

import pytz

from ..config import EventListConfig, NowConfig
from ..models.calendar import CalendarSource
from ..models.event import ResolvedEvent
from ..models.grid import GridLayout
from ..utils.date_utils import date_only_key, format_duration_short, to_local
from .aggregate import OverlapAggregator


@dataclass(frozen=True)
class MonthCell:
    """One day tile of the month grid."""

    day: date
    key: str
    in_month: bool
    is_today: bool
    is_selected: bool
    markers: tuple[CalendarSource, ...] = ()


@dataclass(frozen=True)
class OngoingStatus:
    """Progress of an event that is running right now."""

    progress: Optional[float]
    text: str = ""


@dataclass(frozen=True)
class EventListItem:
    event: ResolvedEvent
    ongoing: Optional[OngoingStatus] = None


@dataclass
class EventListView:
    """Selected-day events after ordering and capping."""

    items: list[EventListItem]
    hidden_count: int
    total: int


def build_month_cells(
    layout: GridLayout,
    aggregator: OverlapAggregator,
    day_markers: dict[str, frozenset[str]],
    enabled: Set[str],
    marker_cap: Optional[int],
    today: date,
    selected_day: date,
) -> list[MonthCell]:
    """
    Build the grid cells with their top-N markers.

    Args:
        layout: Grid layout for the visible month
        aggregator: Aggregator holding the configured sources
        day_markers: Markers from OverlapAggregator.aggregate
        enabled: Currently enabled source ids
        marker_cap: Maximum markers per day (None for all)
        today: Current local date
        selected_day: Currently selected date

    Returns:
        One MonthCell per grid day, in order
    """
    cells = []
    for day in layout.grid_range.days():
        key = date_only_key(day)
        cells.append(
            MonthCell(
                day=day,
                key=key,
                in_month=layout.in_month(day),
                is_today=day == today,
                is_selected=day == selected_day,
                markers=tuple(
                    aggregator.top_sources(key, day_markers, enabled, marker_cap)
                ),
            )
        )
    return cells


def ongoing_status(
    event: ResolvedEvent,
    now: datetime,
    now_config: NowConfig,
) -> Optional[OngoingStatus]:
    """Return progress details when the timed event spans ``now``."""
    if not now_config.enabled or event.all_day:
        return None
    if not (event.start <= now <= event.end):
        return None

    total = (event.end - event.start).total_seconds()
    elapsed = (now - event.start).total_seconds()
    progress = max(0.0, min(1.0, elapsed / total)) if total > 0 else 0.0

    text = ""
    if now_config.show_text:
        elapsed_text = f"+{format_duration_short(elapsed)}"
        remaining_text = f"-{format_duration_short((event.end - now).total_seconds())}"
        if now_config.text_mode == "elapsed":
            text = elapsed_text
        elif now_config.text_mode == "both":
            text = f"{elapsed_text} / {remaining_text}"
        else:
            text = remaining_text

    return OngoingStatus(
        progress=progress if now_config.show_progress else None,
        text=text,
    )


def build_event_list(
    selected_events: Sequence[ResolvedEvent],
    events_config: EventListConfig,
    now_config: Optional[NowConfig] = None,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> EventListView:
    """
    Order and cap the selected day's events.

    All-day events come first, then timed events; both keep their start
    order. The cap applies to the merged list.
    """
    all_day = [ev for ev in selected_events if ev.all_day]
    timed = [ev for ev in selected_events if not ev.all_day]
    merged = all_day + timed

    limit = events_config.max_items
    shown = merged[:limit] if limit else merged

    current = to_local(now if now is not None else datetime.now(pytz.utc), tz)
    items = [
        EventListItem(
            event=ev,
            ongoing=ongoing_status(ev, current, now_config) if now_config else None,
        )
        for ev in shown
    ]
    return EventListView(
        items=items,
        hidden_count=len(merged) - len(shown),
        total=len(merged),
    )
