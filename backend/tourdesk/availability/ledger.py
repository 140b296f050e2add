from __future__ import annotations

from datetime import date
from typing import Any, Iterable


CONFIRMED = "CONFIRMED"

ParticipantsByDate = dict[str, dict[str, int]]


def build_participants_by_date(
    bookings: Iterable[Any],
    nominal_slots: Iterable[str],
) -> ParticipantsByDate:
    """Fold confirmed bookings into per-date, per-slot participant totals."""
    slots = list(nominal_slots)
    ledger: ParticipantsByDate = {}

    for booking in bookings:
        status = getattr(booking, "status", None)
        if status and str(status).upper() != CONFIRMED:
            continue

        booking_date = getattr(booking, "booking_date", None)
        booking_time = getattr(booking, "booking_time", None)
        if not booking_date or not booking_time:
            continue

        key = booking_date.isoformat() if isinstance(booking_date, date) else str(booking_date)
        day = ledger.setdefault(key, {})
        for slot in slots:
            day.setdefault(slot, 0)

        adults = int(getattr(booking, "adults", 0) or 0)
        children = int(getattr(booking, "children", 0) or 0)
        day[booking_time] = day.get(booking_time, 0) + adults + children

    return ledger


def participants_for(ledger: ParticipantsByDate, key: str, slot_time: str) -> int:
    return ledger.get(key, {}).get(slot_time, 0)
