"""Date and time utilities for Calendar Grid application.

All helpers take an optional ``tz`` argument. ``None`` means the local
system time zone; otherwise a pytz zone (or any fixed-offset tzinfo) is
expected. Day arithmetic is done on wall-clock calendar fields and then
re-localized, so adding a day across a daylight-saving transition lands on
the same local time of day instead of drifting by an hour.
"""

import math
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Union

DateLike = Union[date, datetime]


def localize(naive: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """
    Attach a time zone to a naive wall-clock datetime.

    Args:
        naive: Datetime without tzinfo, interpreted as local wall time
        tz: Target zone (None for the system local zone)

    Returns:
        Timezone-aware datetime
    """
    if tz is None:
        return naive.astimezone()
    if hasattr(tz, "localize"):
        return tz.normalize(tz.localize(naive))
    return naive.replace(tzinfo=tz)


def day_start(day: date, tz: Optional[tzinfo] = None) -> datetime:
    """Local midnight at the beginning of ``day``."""
    return localize(datetime.combine(day, time()), tz)


def to_local(value: DateLike, tz: Optional[tzinfo] = None) -> datetime:
    """
    Convert a date or datetime to an aware datetime in the local zone.

    Naive datetimes are taken as local wall time, plain dates as local
    midnight.
    """
    if not isinstance(value, datetime):
        return day_start(value, tz)
    if value.tzinfo is None:
        return localize(value, tz)
    if tz is None:
        return value.astimezone()
    return value.astimezone(tz)


def date_only_key(value: DateLike, tz: Optional[tzinfo] = None) -> str:
    """
    Canonical ``YYYY-MM-DD`` key of the local calendar day.

    Keys sort lexicographically in chronological order.
    """
    if isinstance(value, datetime):
        value = to_local(value, tz).date()
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def start_of_day(value: DateLike, tz: Optional[tzinfo] = None) -> datetime:
    """Truncate to local midnight of the same calendar day."""
    return day_start(to_local(value, tz).date(), tz)


def add_days(value: DateLike, days: int, tz: Optional[tzinfo] = None) -> DateLike:
    """
    Add whole calendar days, keeping the local time of day.

    Plain dates stay plain dates.
    """
    if not isinstance(value, datetime):
        return value + timedelta(days=days)
    local = to_local(value, tz)
    return localize(local.replace(tzinfo=None) + timedelta(days=days), tz)


def iso_with_offset(value: DateLike, tz: Optional[tzinfo] = None) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS+HH:MM`` using the local UTC offset."""
    local = to_local(value, tz)
    offset = local.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return (
        f"{local.year:04d}-{local.month:02d}-{local.day:02d}"
        f"T{local.hour:02d}:{local.minute:02d}:{local.second:02d}"
        f"{sign}{hours:02d}:{mins:02d}"
    )


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """Half-open interval overlap; touching endpoints do not overlap."""
    return a_start < b_end and a_end > b_start


def clamp_number(value, low, high, fallback):
    """
    Clamp a numeric-looking value into ``[low, high]``.

    Args:
        value: Number or numeric string
        low: Lower bound
        high: Upper bound
        fallback: Returned when value is missing or not a finite number

    Returns:
        Clamped number (int when integral) or fallback
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    number = min(high, max(low, number))
    return int(number) if number.is_integer() else number


def format_duration_short(seconds: float) -> str:
    """Render a duration as ``1h 05m`` or ``45m``."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes = rest // 60
    if hours > 0:
        return f"{hours}h {minutes:02d}m"
    return f"{minutes}m"
