"""Month view controller: state snapshots, fetch coalescing and rendering."""

import asyncio
import logging
from collections.abc import Awaitable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime, tzinfo
from typing import Any, Callable, Optional

import pytz

from ..config import CardConfig
from ..models.event import ResolvedEvent, parse_events_by_source
from ..models.grid import GridLayout, GridRange
from ..utils.date_utils import to_local
from ..utils.exceptions import (
    CalendarGridError,
    EventParseError,
    FetchFailedError,
    FetchUnavailableError,
)
from .aggregate import OverlapAggregator
from .cache import CacheEntry, RangeCache
from .range import compute_grid_layout, month_start, shift_month
from .view import EventListView, MonthCell, build_event_list, build_month_cells

logger = logging.getLogger(__name__)

FetchEvents = Callable[[Sequence[str], datetime, datetime], Awaitable[Mapping[str, Any]]]


@dataclass(frozen=True)
class ViewState:
    """Snapshot of what the user is looking at; replaced on every change."""

    view_month: date
    selected_day: date
    enabled: frozenset[str]
    loading: bool = False
    last_error: Optional[str] = None


@dataclass
class RenderModel:
    """Everything needed to draw the card for one state snapshot."""

    layout: GridLayout
    cells: list[MonthCell]
    event_list: EventListView
    day_markers: dict[str, frozenset[str]] = field(default_factory=dict)
    selected_events: list[ResolvedEvent] = field(default_factory=list)
    loading: bool = False
    last_error: Optional[str] = None
    refresh_seconds: Optional[int] = None


class MonthViewController:
    """Drive the month grid: navigation, source toggles, loading and rendering."""

    def __init__(
        self,
        card: CardConfig,
        fetch_events: Optional[FetchEvents],
        tz: Optional[tzinfo] = None,
        cache: Optional[RangeCache] = None,
        today: Optional[date] = None,
    ):
        """
        Initialize controller.

        Args:
            card: Validated card configuration
            fetch_events: Async fetch collaborator (e.g. EventReader.fetch_events)
            tz: Local zone (None for the system local zone)
            cache: Range cache to use (a fresh one by default)
            today: Initial day to show (defaults to the current local date)
        """
        self.card = card
        self.fetch_events = fetch_events
        self.tz = tz
        self.cache = cache if cache is not None else RangeCache()
        self.aggregator = OverlapAggregator(card.calendars, tz)
        self._pending: dict[str, asyncio.Task] = {}

        today = today or self._today()
        self.state = ViewState(
            view_month=month_start(today),
            selected_day=today,
            enabled=frozenset(card.source_ids),
        )

    def _today(self) -> date:
        return to_local(datetime.now(pytz.utc), self.tz).date()

    def _replace(self, **changes) -> None:
        self.state = replace(self.state, **changes)

    def navigate(self, delta: int) -> None:
        """Move the visible month by ``delta`` months."""
        self._replace(view_month=shift_month(self.state.view_month, delta))

    def show_month(self, month: date) -> None:
        self._replace(view_month=month_start(month))

    def go_today(self, today: Optional[date] = None) -> None:
        today = today or self._today()
        self._replace(view_month=month_start(today), selected_day=today)

    def select_day(self, day: date) -> None:
        if isinstance(day, datetime):
            day = to_local(day, self.tz).date()
        self._replace(selected_day=day)

    def toggle_source(self, source_id: str) -> None:
        """
        Enable a disabled source or disable an enabled one.

        Raises:
            ConfigurationError: If the source is not configured
        """
        self.card.get_source(source_id)
        self._replace(enabled=self.state.enabled ^ {source_id})

    def grid_layout(self) -> GridLayout:
        return compute_grid_layout(
            self.state.view_month, self.card.week_starts_on_monday
        )

    def cache_key(self, layout: Optional[GridLayout] = None) -> str:
        layout = layout or self.grid_layout()
        return self.cache.key(layout.grid_range, self.state.enabled)

    def active_entry(self) -> Optional[CacheEntry]:
        return self.cache.get(self.cache_key())

    @property
    def pending_keys(self) -> frozenset[str]:
        return frozenset(self._pending)

    async def load_visible_range(self) -> Optional[CacheEntry]:
        """
        Make sure events for the visible range are cached.

        A cached key returns immediately. A key that is already being fetched
        waits on the in-flight fetch instead of issuing another one. Fetch
        errors are recorded in ``state.last_error`` and never raised.

        Returns:
            The cache entry for the visible range, or None if the fetch failed
        """
        layout = self.grid_layout()
        enabled = self.state.enabled
        key = self.cache.key(layout.grid_range, enabled)

        entry = self.cache.get(key)
        if entry is not None:
            logger.debug(f"Cache hit for {key}")
            return entry

        task = self._pending.get(key)
        if task is None:
            self._replace(loading=True, last_error=None)
            task = asyncio.ensure_future(self._fetch(key, layout.grid_range, enabled))
            self._pending[key] = task
        else:
            logger.debug(f"Fetch for {key} already in flight, waiting on it")

        return await asyncio.shield(task)

    async def _fetch(
        self,
        key: str,
        grid_range: GridRange,
        enabled: frozenset[str],
    ) -> Optional[CacheEntry]:
        source_ids = [sid for sid in self.card.source_ids if sid in enabled]
        start, end = grid_range.bounds(self.tz)
        logger.info(f"Loading events {grid_range.start} - {grid_range.end} for {len(source_ids)} calendar(s)")

        try:
            if not callable(self.fetch_events):
                raise FetchUnavailableError("No event reader is configured")
            payload = await self.fetch_events(source_ids, start, end)
            try:
                events = parse_events_by_source(payload)
            except EventParseError as e:
                raise FetchFailedError(f"Invalid events payload: {e}") from e
            entry = self.cache.put(
                key,
                CacheEntry(grid_range=grid_range, sources=enabled, events_by_source=events),
            )
            logger.info(f"Loaded {sum(len(v) for v in events.values())} events for {key}")
            return entry
        except CalendarGridError as e:
            logger.error(f"Failed to load events for {key}: {e}")
            self._replace(last_error=str(e))
            return None
        except Exception as e:
            logger.error(f"Failed to load events for {key}: {e}")
            self._replace(last_error=str(e) or e.__class__.__name__)
            return None
        finally:
            self._pending.pop(key, None)
            self._replace(loading=bool(self._pending))

    def render(self, now: Optional[datetime] = None) -> RenderModel:
        """
        Build the render model for the current state snapshot.

        Args:
            now: Current instant (defaults to the wall clock)
        """
        state = self.state
        layout = compute_grid_layout(state.view_month, self.card.week_starts_on_monday)
        entry = self.cache.get(self.cache.key(layout.grid_range, state.enabled))
        result = self.aggregator.aggregate(entry, state.enabled, state.selected_day)

        today = to_local(now, self.tz).date() if now is not None else self._today()
        cells = build_month_cells(
            layout,
            self.aggregator,
            result.day_markers,
            state.enabled,
            self.card.marker_cap,
            today,
            state.selected_day,
        )
        event_list = build_event_list(
            result.selected_events,
            self.card.events,
            self.card.now,
            now=now,
            tz=self.tz,
        )
        return RenderModel(
            layout=layout,
            cells=cells,
            event_list=event_list,
            day_markers=result.day_markers,
            selected_events=result.selected_events,
            loading=state.loading,
            last_error=state.last_error,
            refresh_seconds=self.card.now.update_seconds if self.card.now.enabled else None,
        )
