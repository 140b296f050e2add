"""Booking cutoff rules for a single tour slot.

All datetimes are expected to be timezone-aware and expressed in the tour's
local zone; ``now`` decides what "today" and "tomorrow" mean.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta


_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


class MalformedSlotTimeError(ValueError):
    pass


def parse_slot_time(value: object) -> time:
    if not isinstance(value, str):
        raise MalformedSlotTimeError(f"Invalid slot time: {value!r}")
    match = _TIME_PATTERN.match(value.strip())
    if match is None:
        raise MalformedSlotTimeError(f"Invalid slot time: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise MalformedSlotTimeError(f"Invalid slot time: {value!r}")
    return time(hour=hour, minute=minute)


def slot_datetime(tour_date: date, slot_time: str, now: datetime) -> datetime:
    return datetime.combine(tour_date, parse_slot_time(slot_time), tzinfo=now.tzinfo)


def hours_until_slot(tour_date: date, slot_time: str, now: datetime) -> float:
    return (slot_datetime(tour_date, slot_time, now) - now).total_seconds() / 3600


def is_slot_bookable(
    tour_date: date,
    slot_time: str,
    now: datetime,
    has_participants: bool,
    cutoff_hours: float,
    cutoff_hours_with_participant: float,
) -> bool:
    cutoff = cutoff_hours_with_participant if has_participants else cutoff_hours
    return hours_until_slot(tour_date, slot_time, now) >= cutoff


def is_past_next_day_cutoff(
    tour_date: date,
    now: datetime,
    next_day_cutoff_time: str | None,
) -> bool:
    """True once bookings for tomorrow have closed for the day."""
    if not next_day_cutoff_time:
        return False
    today = now.date()
    if tour_date != today + timedelta(days=1):
        return False
    cutoff_at = datetime.combine(today, parse_slot_time(next_day_cutoff_time), tzinfo=now.tzinfo)
    return now >= cutoff_at
