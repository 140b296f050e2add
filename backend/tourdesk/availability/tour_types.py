from __future__ import annotations

from enum import Enum


class TourType(str, Enum):
    NIGHT_TOUR = "NIGHT_TOUR"
    MORNING_TOUR = "MORNING_TOUR"
    UJI_TOUR = "UJI_TOUR"
    GION_TOUR = "GION_TOUR"
    MUSIC_TOUR = "MUSIC_TOUR"
    MUSIC_PERFORMANCE = "MUSIC_PERFORMANCE"

    @property
    def uses_database_slots(self) -> bool:
        return self in _DATABASE_BACKED


_DATABASE_BACKED = frozenset({TourType.MUSIC_TOUR, TourType.MUSIC_PERFORMANCE})

# The walking tour shares seats with the main Uji tour.
_ALIASES = {
    "uji-walking-tour": TourType.UJI_TOUR,
}


def parse_tour_type(raw: object) -> TourType:
    """Normalize a tour identifier from the outside world.

    Accepts ``night-tour``, ``NIGHT_TOUR`` and ``Night tour`` alike.
    """
    if isinstance(raw, TourType):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError("Tour identifier is required.")

    slug = "-".join(raw.strip().lower().replace("_", " ").replace("-", " ").split())
    if slug in _ALIASES:
        return _ALIASES[slug]

    candidate = slug.replace("-", "_").upper()
    try:
        return TourType(candidate)
    except ValueError:
        raise ValueError(f"Unknown tour: {raw}") from None
