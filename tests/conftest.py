"""
Shared pytest fixtures and event helpers.
"""

from datetime import datetime

import pytest
import pytz

from calendar_grid.config import CardConfig
from calendar_grid.models.event import CalendarEvent

PRAGUE = pytz.timezone("Europe/Prague")

WORK = "calendar.work"
FAMILY = "calendar.family"
HOLIDAYS = "calendar.holidays"


def local(year, month, day, hour=0, minute=0):
    """Aware Prague datetime for the given wall-clock time."""
    return PRAGUE.localize(datetime(year, month, day, hour, minute))


def make_event(start, end, summary="Test Event", **kwargs) -> CalendarEvent:
    """Return a CalendarEvent; start/end may be datetimes or ISO strings."""
    return CalendarEvent.model_validate({"start": start, "end": end, "summary": summary, **kwargs})


@pytest.fixture
def prague():
    return PRAGUE


@pytest.fixture
def card_data():
    return {
        "calendars": [
            {"entity": WORK, "color": "#4285f4", "label": "Work", "priority": 2},
            {"entity": FAMILY, "color": "#e67c73", "label": "Family", "priority": 1},
            {"entity": HOLIDAYS, "color": "#33b679", "label": "Holidays"},
        ],
        "start_weekday": "monday",
    }


@pytest.fixture
def card(card_data):
    return CardConfig.from_mapping(card_data)


@pytest.fixture
def sources(card):
    return card.calendars
