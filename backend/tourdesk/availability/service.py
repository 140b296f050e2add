from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from tourdesk import config
from tourdesk.availability.cache import AvailabilityCache
from tourdesk.availability.engine import ReconciliationEngine
from tourdesk.availability.ledger import build_participants_by_date
from tourdesk.availability.sources import build_slot_source
from tourdesk.availability.tour_config import load_tour_config
from tourdesk.availability.tour_types import TourType
from tourdesk.bookings.store import get_all_bookings
from tourdesk.integrations.bokun import BokunClient


_caches: dict[TourType, AvailabilityCache] = {}


def get_cache(tour_type: TourType) -> AvailabilityCache:
    cache = _caches.get(tour_type)
    if cache is None:
        cache = AvailabilityCache(ttl_seconds=config.AVAILABILITY_CACHE_TTL_SECONDS)
        _caches[tour_type] = cache
    return cache


def reset_caches() -> None:
    _caches.clear()


def tour_now() -> datetime:
    return datetime.now(ZoneInfo(config.TOUR_TIMEZONE))


async def build_engine(
    db: Session,
    tour_type: TourType,
    client: BokunClient | None,
) -> ReconciliationEngine:
    tour_config = load_tour_config(db, tour_type)
    bookings = await get_all_bookings(db, tour_type, client=client, today=tour_now().date())
    return ReconciliationEngine(
        config=tour_config,
        participants=build_participants_by_date(bookings, tour_config.time_slots),
        source=build_slot_source(db, tour_type, client),
        cache=get_cache(tour_type),
        now=tour_now,
    )
