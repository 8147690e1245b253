"""
Tests for per-day marker and selected-day aggregation.
"""

from datetime import date, datetime

import pytest
import pytz

from calendar_grid.grid.aggregate import OverlapAggregator
from calendar_grid.grid.cache import CacheEntry
from calendar_grid.grid.range import compute_grid_layout
from calendar_grid.models.calendar import CalendarSource

from conftest import FAMILY, HOLIDAYS, PRAGUE, WORK, local, make_event

SANTIAGO = pytz.timezone("America/Santiago")

FEB_2024 = compute_grid_layout(date(2024, 2, 1)).grid_range
MAR_2024 = compute_grid_layout(date(2024, 3, 1)).grid_range
ALL = frozenset({WORK, FAMILY, HOLIDAYS})


def _entry(events_by_source, grid_range=FEB_2024):
    return CacheEntry(
        grid_range=grid_range,
        sources=frozenset(events_by_source),
        events_by_source={sid: tuple(evs) for sid, evs in events_by_source.items()},
    )


@pytest.fixture
def aggregator(sources):
    return OverlapAggregator(sources, PRAGUE)


class TestDayMarkers:
    def test_single_timed_event_marks_one_day(self, aggregator):
        entry = _entry({WORK: [make_event(local(2024, 2, 10, 9), local(2024, 2, 10, 10, 30))]})

        result = aggregator.aggregate(entry, ALL, date(2024, 2, 10))

        assert result.day_markers == {"2024-02-10": frozenset({WORK})}
        assert [ev.title for ev in result.selected_events] == ["Test Event"]

    def test_multi_day_event_marks_each_day(self, aggregator):
        entry = _entry({WORK: [make_event(local(2024, 2, 10, 22), local(2024, 2, 12, 1))]})

        result = aggregator.aggregate(entry, ALL, date(2024, 2, 1))

        assert sorted(result.day_markers) == ["2024-02-10", "2024-02-11", "2024-02-12"]

    def test_end_at_midnight_does_not_mark_next_day(self, aggregator):
        entry = _entry({HOLIDAYS: [make_event("2024-02-10", "2024-02-12")]})

        result = aggregator.aggregate(entry, ALL, date(2024, 2, 12))

        assert sorted(result.day_markers) == ["2024-02-10", "2024-02-11"]
        assert result.selected_events == []

    def test_events_are_clamped_to_grid(self, aggregator):
        entry = _entry({WORK: [make_event(local(2024, 1, 1), local(2024, 1, 31, 12))]})

        result = aggregator.aggregate(entry, ALL, date(2024, 1, 30))

        assert sorted(result.day_markers) == ["2024-01-29", "2024-01-30", "2024-01-31"]
        assert len(result.selected_events) == 1

    def test_event_outside_grid_marks_nothing(self, aggregator):
        entry = _entry({WORK: [make_event(local(2024, 3, 10, 9), local(2024, 3, 10, 10))]})

        assert aggregator.aggregate(entry, ALL, date(2024, 3, 10)).day_markers == {}

    def test_zero_duration_event_is_excluded(self, aggregator):
        instant = local(2024, 2, 10, 9)
        entry = _entry({WORK: [make_event(instant, instant)]})

        result = aggregator.aggregate(entry, ALL, date(2024, 2, 10))

        assert result.day_markers == {}
        assert result.selected_events == []

    def test_disabled_sources_are_skipped(self, aggregator):
        entry = _entry({
            WORK: [make_event(local(2024, 2, 10, 9), local(2024, 2, 10, 10))],
            FAMILY: [make_event(local(2024, 2, 10, 18), local(2024, 2, 10, 19))],
        })

        result = aggregator.aggregate(entry, frozenset({FAMILY}), date(2024, 2, 10))

        assert result.day_markers == {"2024-02-10": frozenset({FAMILY})}
        assert [ev.source.id for ev in result.selected_events] == [FAMILY]

    def test_several_sources_on_same_day(self, aggregator):
        entry = _entry({
            WORK: [make_event(local(2024, 2, 10, 9), local(2024, 2, 10, 10))],
            FAMILY: [make_event(local(2024, 2, 10, 18), local(2024, 2, 10, 19))],
        })

        result = aggregator.aggregate(entry, ALL, date(2024, 2, 1))

        assert result.day_markers["2024-02-10"] == frozenset({WORK, FAMILY})

    def test_all_day_event_on_dst_day_marks_single_day(self, aggregator):
        entry = _entry({HOLIDAYS: [make_event("2024-03-31", "2024-04-01")]}, MAR_2024)

        result = aggregator.aggregate(entry, ALL, date(2024, 3, 31))

        assert result.day_markers == {"2024-03-31": frozenset({HOLIDAYS})}
        assert result.selected_events[0].all_day

    def test_utc_event_lands_on_local_day(self, aggregator):
        entry = _entry({WORK: [make_event("2024-02-09T23:30:00+00:00", "2024-02-10T00:30:00+00:00")]})

        result = aggregator.aggregate(entry, ALL, date(2024, 2, 10))

        assert result.day_markers == {"2024-02-10": frozenset({WORK})}

    def test_missing_entry_renders_empty(self, aggregator):
        result = aggregator.aggregate(None, ALL, date(2024, 2, 10))
        assert result.day_markers == {}
        assert result.selected_events == []


class TestSelectedEvents:
    def test_sorted_by_start_with_stable_ties(self, aggregator):
        entry = _entry({
            WORK: [
                make_event(local(2024, 2, 10, 14), local(2024, 2, 10, 15), "work late"),
                make_event(local(2024, 2, 10, 9), local(2024, 2, 10, 10), "work early"),
            ],
            FAMILY: [make_event(local(2024, 2, 10, 9), local(2024, 2, 10, 11), "family early")],
        })

        result = aggregator.aggregate(entry, ALL, date(2024, 2, 10))

        assert [ev.title for ev in result.selected_events] == [
            "work early",
            "family early",
            "work late",
        ]

    def test_resolved_event_carries_source_and_local_bounds(self, aggregator, sources):
        entry = _entry({FAMILY: [make_event("2024-02-10T08:00:00+00:00", "2024-02-10T09:00:00+00:00")]})

        [resolved] = aggregator.aggregate(entry, ALL, date(2024, 2, 10)).selected_events

        assert resolved.source == sources[1]
        assert resolved.start == local(2024, 2, 10, 9)
        assert resolved.start.utcoffset() == local(2024, 2, 10).utcoffset()

    def test_event_spanning_selected_day_is_listed(self, aggregator):
        entry = _entry({WORK: [make_event(local(2024, 2, 9, 20), local(2024, 2, 11, 8))]})

        result = aggregator.aggregate(entry, ALL, date(2024, 2, 10))

        assert len(result.selected_events) == 1

    def test_repeated_aggregation_is_identical(self, aggregator):
        entry = _entry({
            WORK: [make_event(local(2024, 2, 10, 9), local(2024, 2, 10, 10))],
            FAMILY: [make_event(local(2024, 2, 10, 8), local(2024, 2, 12, 8))],
        })
        snapshot = entry.model_copy(deep=True)

        first = aggregator.aggregate(entry, ALL, date(2024, 2, 10))
        second = aggregator.aggregate(entry, ALL, date(2024, 2, 10))

        assert first == second
        assert entry == snapshot


class TestTopSources:
    def test_lower_priority_number_wins(self, aggregator):
        markers = {"2024-02-10": frozenset({WORK, FAMILY})}

        top = aggregator.top_sources("2024-02-10", markers, ALL, limit=1)

        assert [s.id for s in top] == [FAMILY]

    def test_missing_priority_sorts_last(self, aggregator):
        markers = {"2024-02-10": frozenset({WORK, FAMILY, HOLIDAYS})}

        top = aggregator.top_sources("2024-02-10", markers, ALL)

        assert [s.id for s in top] == [FAMILY, WORK, HOLIDAYS]

    def test_equal_priority_keeps_declaration_order(self):
        sources = [
            CalendarSource(id="b", priority=1),
            CalendarSource(id="a", priority=1),
            CalendarSource(id="c"),
        ]
        aggregator = OverlapAggregator(sources, PRAGUE)
        markers = {"k": frozenset({"a", "b", "c"})}

        top = aggregator.top_sources("k", markers, frozenset({"a", "b", "c"}), limit=2)

        assert [s.id for s in top] == ["b", "a"]

    def test_disabled_and_unmarked_days(self, aggregator):
        markers = {"2024-02-10": frozenset({WORK, FAMILY})}

        assert [s.id for s in aggregator.top_sources("2024-02-10", markers, frozenset({WORK}), 2)] == [WORK]
        assert aggregator.top_sources("2024-02-11", markers, ALL, 2) == []

    def test_zero_cap(self, aggregator):
        markers = {"2024-02-10": frozenset({WORK})}
        assert aggregator.top_sources("2024-02-10", markers, ALL, limit=0) == []


class TestMidnightDstStart:
    """America/Santiago skips 00:00 -> 01:00 on 2024-09-08."""

    def test_markers_continue_past_missing_midnight(self, sources):
        aggregator = OverlapAggregator(sources, SANTIAGO)
        grid_range = compute_grid_layout(date(2024, 9, 1)).grid_range
        event = make_event(
            SANTIAGO.localize(datetime(2024, 9, 8, 10)),
            SANTIAGO.localize(datetime(2024, 9, 9, 0, 30)),
        )

        result = aggregator.aggregate(_entry({WORK: [event]}, grid_range), ALL, date(2024, 9, 9))

        assert sorted(result.day_markers) == ["2024-09-08", "2024-09-09"]
        assert len(result.selected_events) == 1

    def test_event_after_skipped_hour_is_on_that_day(self, sources):
        aggregator = OverlapAggregator(sources, SANTIAGO)
        grid_range = compute_grid_layout(date(2024, 9, 1)).grid_range
        event = make_event(
            SANTIAGO.localize(datetime(2024, 9, 8, 1, 30)),
            SANTIAGO.localize(datetime(2024, 9, 8, 2)),
        )

        result = aggregator.aggregate(_entry({WORK: [event]}, grid_range), ALL, date(2024, 9, 8))

        assert result.day_markers == {"2024-09-08": frozenset({WORK})}
        assert len(result.selected_events) == 1
