from tourdesk.availability.cache import AvailabilityCache
from tourdesk.availability.engine import ReconciliationEngine
from tourdesk.availability.ledger import build_participants_by_date
from tourdesk.availability.models import DayAvailability, FetchError, TimeSlot, TourConfig
from tourdesk.availability.tour_types import TourType, parse_tour_type

__all__ = [
    "AvailabilityCache",
    "DayAvailability",
    "FetchError",
    "ReconciliationEngine",
    "TimeSlot",
    "TourConfig",
    "TourType",
    "build_participants_by_date",
    "parse_tour_type",
]
