from datetime import date
from types import SimpleNamespace

from tourdesk.availability.ledger import build_participants_by_date, participants_for


def _booking(booking_date, booking_time, adults, children=0, status="CONFIRMED", infants=0):
    return SimpleNamespace(
        booking_date=booking_date,
        booking_time=booking_time,
        adults=adults,
        children=children,
        infants=infants,
        status=status,
    )


def test_counts_adults_and_children_per_slot():
    ledger = build_participants_by_date(
        [
            _booking(date(2026, 10, 20), "10:00", 2, 1),
            _booking("2026-10-20", "10:00", 3, infants=2),
            _booking(date(2026, 10, 20), "14:00", 1),
        ],
        ["10:00", "14:00", "18:00"],
    )

    assert ledger == {"2026-10-20": {"10:00": 6, "14:00": 1, "18:00": 0}}


def test_skips_unconfirmed_and_incomplete_bookings():
    ledger = build_participants_by_date(
        [
            _booking(date(2026, 10, 20), "10:00", 4, status="CANCELLED"),
            _booking(date(2026, 10, 20), "10:00", 4, status="PENDING_PAYMENT"),
            _booking(None, "10:00", 4),
            _booking(date(2026, 10, 20), "", 4),
        ],
        ["10:00"],
    )

    assert ledger == {}


def test_participants_for_defaults_to_zero():
    ledger = {"2026-10-20": {"10:00": 3}}

    assert participants_for(ledger, "2026-10-20", "10:00") == 3
    assert participants_for(ledger, "2026-10-20", "14:00") == 0
    assert participants_for(ledger, "2026-10-21", "10:00") == 0
