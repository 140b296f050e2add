from tourdesk.db.base import Base
from tourdesk.db.models import (
    BokunProduct,
    Booking,
    Tour,
    TourTimeSlot,
)

__all__ = [
    "Base",
    "BokunProduct",
    "Booking",
    "Tour",
    "TourTimeSlot",
]
