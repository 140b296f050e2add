from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any

from sqlalchemy.orm import Session

from tourdesk.availability.ledger import CONFIRMED
from tourdesk.availability.sources import find_bokun_product_id
from tourdesk.availability.tour_types import TourType
from tourdesk.db.models import Booking
from tourdesk.integrations.bokun import BokunAPIError, BokunClient


logger = logging.getLogger("tourdesk.availability")

EXTERNAL_LOOKBACK_DAYS = 30
EXTERNAL_LOOKAHEAD_DAYS = 90
DEFAULT_EXTERNAL_START_TIME = "18:00"


@dataclass(frozen=True)
class ExternalBooking:
    id: str
    tour_type: str
    booking_date: str
    booking_time: str
    adults: int
    children: int
    infants: int
    status: str
    bokun_booking_id: str
    external_source: str = "bokun"


def fetch_local_bookings(db: Session, tour_type: TourType) -> list[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.tour_type == tour_type.value)
        .filter(Booking.status == CONFIRMED)
        .all()
    )


async def fetch_external_bookings(
    client: BokunClient,
    product_id: str,
    tour_type: TourType,
    today: date,
) -> list[ExternalBooking]:
    raw_bookings = await client.get_bookings(
        product_id,
        today - timedelta(days=EXTERNAL_LOOKBACK_DAYS),
        today + timedelta(days=EXTERNAL_LOOKAHEAD_DAYS),
    )
    transformed = []
    for raw in raw_bookings:
        booking = transform_bokun_booking(raw, tour_type)
        if booking is not None:
            transformed.append(booking)
    return transformed


def transform_bokun_booking(raw: dict[str, Any], tour_type: TourType) -> ExternalBooking | None:
    if not isinstance(raw, dict) or raw.get("id") is None:
        return None

    booking_date = _parse_bokun_date(raw.get("startDate"))
    if booking_date is None:
        return None

    fields = raw.get("fields") if isinstance(raw.get("fields"), dict) else {}
    participants = raw.get("participants") if isinstance(raw.get("participants"), dict) else {}

    return ExternalBooking(
        id=f"bokun_{raw['id']}",
        tour_type=tour_type.value,
        booking_date=booking_date.isoformat(),
        booking_time=str(fields.get("startTimeStr") or DEFAULT_EXTERNAL_START_TIME),
        adults=_coerce_count(participants.get("adults")),
        children=_coerce_count(participants.get("children")),
        infants=_coerce_count(participants.get("infants")),
        status=CONFIRMED,
        bokun_booking_id=str(raw["id"]),
    )


async def get_all_bookings(
    db: Session,
    tour_type: TourType,
    client: BokunClient | None = None,
    today: date | None = None,
) -> list[Any]:
    """Local confirmed bookings plus Bokun bookings, de-duplicated.

    External failures fall back to the local list.
    """
    local_bookings = fetch_local_bookings(db, tour_type)

    external_bookings: list[ExternalBooking] = []
    product_id = find_bokun_product_id(db, tour_type) if client is not None else None
    if client is not None and product_id:
        try:
            external_bookings = await fetch_external_bookings(
                client,
                product_id,
                tour_type,
                today or datetime.now(timezone.utc).date(),
            )
        except BokunAPIError as exc:
            logger.warning(
                "Bokun bookings unavailable, using local bookings only. tour=%s error=%s",
                tour_type.value,
                exc,
            )

    unique: dict[str, Any] = {}
    for booking in [*local_bookings, *external_bookings]:
        key = getattr(booking, "bokun_booking_id", None) or f"local_{booking.id}"
        unique.setdefault(str(key), booking)

    logger.info(
        "Bookings fetched. tour=%s local=%s external=%s total=%s",
        tour_type.value,
        len(local_bookings),
        len(external_bookings),
        len(unique),
    )
    return list(unique.values())


def _parse_bokun_date(value: Any) -> date | None:
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date()
    return None


def _coerce_count(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0
