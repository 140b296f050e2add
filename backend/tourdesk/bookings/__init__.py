from tourdesk.bookings.store import (
    ExternalBooking,
    fetch_local_bookings,
    get_all_bookings,
    transform_bokun_booking,
)

__all__ = [
    "ExternalBooking",
    "fetch_local_bookings",
    "get_all_bookings",
    "transform_bokun_booking",
]
