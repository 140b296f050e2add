from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date


SOURCE_DATABASE = "database"
SOURCE_EXTERNAL = "external"


def current_timestamp_ms() -> int:
    return int(time.time() * 1000)


def date_key(value: date) -> str:
    return value.isoformat()


@dataclass(frozen=True)
class TimeSlot:
    time: str
    available_spots: int | None = None


@dataclass(frozen=True)
class DayAvailability:
    date_key: str
    has_availability: bool
    time_slots: list[TimeSlot] = field(default_factory=list)
    timestamp: int = field(default_factory=current_timestamp_ms)
    source: str | None = None
    fallback: bool = False

    @property
    def has_external_signal(self) -> bool:
        if self.fallback:
            return False
        if self.source == SOURCE_DATABASE:
            return True
        return any(slot.available_spots is not None for slot in self.time_slots)


@dataclass(frozen=True)
class FetchError:
    date_key: str
    reason: str


@dataclass(frozen=True)
class TourConfig:
    tour_type: str
    max_participants: int
    time_slots: tuple[str, ...]
    cancellation_cutoff_hours: float
    cancellation_cutoff_hours_with_participant: float
    next_day_cutoff_time: str | None = None

    def nominal_slots(self) -> list[TimeSlot]:
        return [TimeSlot(time=value) for value in self.time_slots]
