"""Where a day's remaining-seat data comes from.

Sources never raise for expected failures; they hand back a ``FetchError``
and let the engine decide how to degrade.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tourdesk.availability.models import (
    SOURCE_DATABASE,
    SOURCE_EXTERNAL,
    DayAvailability,
    FetchError,
    TimeSlot,
    date_key,
)
from tourdesk.availability.tour_types import TourType
from tourdesk.db.models import BokunProduct, TourTimeSlot
from tourdesk.integrations.bokun import BokunAPIError, BokunClient, normalize_availability_slots


logger = logging.getLogger("tourdesk.availability")


class SlotSource(Protocol):
    async def fetch_day(self, target_date: date) -> DayAvailability | FetchError: ...


class DatabaseSlotSource:
    def __init__(self, db: Session, tour_type: TourType) -> None:
        self._db = db
        self._tour_type = tour_type

    async def fetch_day(self, target_date: date) -> DayAvailability | FetchError:
        key = date_key(target_date)
        try:
            rows = (
                self._db.query(TourTimeSlot)
                .filter(TourTimeSlot.tour_type == self._tour_type.value)
                .filter(TourTimeSlot.slot_date == target_date)
                .all()
            )
        except SQLAlchemyError as exc:
            logger.warning("Slot table query failed. tour=%s date=%s error=%s", self._tour_type.value, key, exc)
            return FetchError(date_key=key, reason="database_error")

        slots = [
            TimeSlot(time=row.slot_time, available_spots=int(row.available_spots))
            for row in rows
            if (row.available_spots or 0) > 0
        ]
        return DayAvailability(
            date_key=key,
            has_availability=len(slots) > 0,
            time_slots=slots,
            source=SOURCE_DATABASE,
        )


class BokunSlotSource:
    def __init__(self, client: BokunClient | None, product_id: str | None) -> None:
        self._client = client
        self._product_id = product_id

    async def fetch_day(self, target_date: date) -> DayAvailability | FetchError:
        key = date_key(target_date)
        if self._client is None:
            return FetchError(date_key=key, reason="bokun_not_configured")
        if not self._product_id:
            return FetchError(date_key=key, reason="missing_product_mapping")

        try:
            availabilities = await self._client.get_availabilities(
                self._product_id, target_date, target_date
            )
        except BokunAPIError as exc:
            logger.warning("Bokun availability fetch failed. date=%s error=%s", key, exc)
            return FetchError(date_key=key, reason="bokun_error")

        slots = [
            TimeSlot(time=item["time"], available_spots=item["available_spots"])
            for item in normalize_availability_slots(availabilities)
        ]
        return DayAvailability(
            date_key=key,
            has_availability=len(slots) > 0,
            time_slots=slots,
            source=SOURCE_EXTERNAL,
        )


def find_bokun_product_id(db: Session, tour_type: TourType) -> str | None:
    for product in db.query(BokunProduct).all():
        if product.local_tour_type == tour_type.value and product.is_active:
            return str(product.bokun_product_id)
    return None


def build_slot_source(
    db: Session,
    tour_type: TourType,
    client: BokunClient | None,
) -> SlotSource:
    if tour_type.uses_database_slots:
        return DatabaseSlotSource(db=db, tour_type=tour_type)
    return BokunSlotSource(client=client, product_id=find_bokun_product_id(db, tour_type))
