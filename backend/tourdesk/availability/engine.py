from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable

from tourdesk.availability.cache import AvailabilityCache
from tourdesk.availability.cutoff import (
    MalformedSlotTimeError,
    is_past_next_day_cutoff,
    is_slot_bookable,
)
from tourdesk.availability.ledger import ParticipantsByDate, participants_for
from tourdesk.availability.models import (
    DayAvailability,
    FetchError,
    TimeSlot,
    TourConfig,
    date_key,
)
from tourdesk.availability.sources import SlotSource


logger = logging.getLogger("tourdesk.availability")

NEXT_AVAILABLE_HORIZON_MONTHS = 6


class ReconciliationEngine:
    """Answers slot questions for one tour by merging external and local data.

    ``get_available_times`` and ``is_date_full`` only read the cache; callers
    populate it with ``preload`` for the dates they intend to show.
    """

    def __init__(
        self,
        config: TourConfig,
        participants: ParticipantsByDate,
        source: SlotSource,
        cache: AvailabilityCache,
        now: Callable[[], datetime],
    ) -> None:
        self.config = config
        self.participants = participants
        self.source = source
        self.cache = cache
        self._now = now

    def get_available_times(self, target_date: date, party_size: int) -> list[str]:
        key = date_key(target_date)
        now = self._now()

        if self._past_next_day_cutoff(target_date, now):
            return []

        day = self.cache.get_fresh(key)
        if day is not None:
            slots = day.time_slots
            has_signal = day.has_external_signal
        else:
            slots = self.config.nominal_slots()
            has_signal = False

        available: list[str] = []
        for slot in slots:
            booked = participants_for(self.participants, key, slot.time)
            if has_signal and slot.available_spots is not None:
                spots_ok = slot.available_spots >= party_size
            else:
                spots_ok = self.config.max_participants - booked >= party_size

            if spots_ok and self._outside_cutoff(target_date, slot.time, now):
                available.append(slot.time)
        return available

    def is_date_full(self, target_date: date, party_size: int) -> bool:
        # Cutoff is deliberately not checked here, matching the storefront
        # calendar; a day can read "not full" while get_available_times is empty.
        key = date_key(target_date)
        day = self.cache.get_fresh(key)

        if day is not None and not day.fallback:
            for slot in day.time_slots:
                if slot.available_spots is not None:
                    if slot.available_spots >= party_size:
                        return False
                elif self._fits_locally(key, slot.time, party_size):
                    return False
            return True

        if key not in self.participants:
            return False
        for slot_time in self.config.time_slots:
            if self._fits_locally(key, slot_time, party_size):
                return False
        return True

    def is_date_disabled(self, target_date: date, party_size: int) -> bool:
        """Whether a calendar should grey out ``target_date`` for this party.

        Unlike ``is_date_full`` this accounts for past dates and every cutoff.
        """
        now = self._now()
        if target_date < now.date():
            return True
        if self._past_next_day_cutoff(target_date, now):
            return True

        day = self.cache.get_fresh(date_key(target_date))
        if day is not None and not day.fallback:
            if not day.has_availability:
                return True
            return not self.get_available_times(target_date, party_size)

        if not any(
            self._outside_cutoff(target_date, slot_time, now) for slot_time in self.config.time_slots
        ):
            return True
        return self.is_date_full(target_date, party_size)

    async def preload(self, start: date, end: date) -> dict[str, DayAvailability]:
        """Fetch every non-fresh date in ``[start, end]`` concurrently."""
        loaded: dict[str, DayAvailability] = {}
        pending: list[date] = []

        for current in _iter_dates(start, end):
            key = date_key(current)
            fresh = self.cache.get_fresh(key)
            if fresh is not None:
                loaded[key] = fresh
            else:
                pending.append(current)

        results = await asyncio.gather(*(self._fetch_or_fallback(day) for day in pending))
        for result in results:
            self.cache.set(result.date_key, result)
            loaded[result.date_key] = result
        return loaded

    async def find_next_available_date(self) -> date:
        today = self._now().date()
        horizon = _add_months(today, NEXT_AVAILABLE_HORIZON_MONTHS)

        for current in _iter_dates(today, horizon):
            try:
                result = await self.source.fetch_day(current)
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Slot source raised during next-available scan. tour=%s date=%s",
                    self.config.tour_type,
                    current,
                )
                continue
            if isinstance(result, FetchError):
                logger.warning(
                    "Skipping date during next-available scan. tour=%s date=%s reason=%s",
                    self.config.tour_type,
                    result.date_key,
                    result.reason,
                )
                continue
            if result.has_availability:
                return current
        return today

    async def _fetch_or_fallback(self, target_date: date) -> DayAvailability:
        try:
            result = await self.source.fetch_day(target_date)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Slot source raised. tour=%s date=%s", self.config.tour_type, target_date)
            result = FetchError(date_key=date_key(target_date), reason=str(exc) or "unexpected_error")

        if isinstance(result, FetchError):
            logger.warning(
                "Availability unavailable, using configured slots. tour=%s date=%s reason=%s",
                self.config.tour_type,
                result.date_key,
                result.reason,
            )
            return self._fallback_day(result.date_key)
        return replace(result, timestamp=self.cache.now_ms())

    def _fallback_day(self, key: str) -> DayAvailability:
        return DayAvailability(
            date_key=key,
            has_availability=True,
            time_slots=[TimeSlot(time=value) for value in self.config.time_slots],
            timestamp=self.cache.now_ms(),
            fallback=True,
        )

    def _past_next_day_cutoff(self, target_date: date, now: datetime) -> bool:
        try:
            return is_past_next_day_cutoff(target_date, now, self.config.next_day_cutoff_time)
        except MalformedSlotTimeError:
            logger.warning(
                "Ignoring malformed next-day cutoff. tour=%s value=%s",
                self.config.tour_type,
                self.config.next_day_cutoff_time,
            )
            return False

    def _outside_cutoff(self, target_date: date, slot_time: str, now: datetime) -> bool:
        key = date_key(target_date)
        try:
            return is_slot_bookable(
                target_date,
                slot_time,
                now,
                has_participants=participants_for(self.participants, key, slot_time) > 0,
                cutoff_hours=self.config.cancellation_cutoff_hours,
                cutoff_hours_with_participant=self.config.cancellation_cutoff_hours_with_participant,
            )
        except MalformedSlotTimeError:
            logger.warning(
                "Rejecting slot with malformed time. tour=%s date=%s time=%r",
                self.config.tour_type,
                key,
                slot_time,
            )
            return False

    def _fits_locally(self, key: str, slot_time: str, party_size: int) -> bool:
        booked = participants_for(self.participants, key, slot_time)
        return booked + party_size <= self.config.max_participants


def _iter_dates(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def _add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    for day in (value.day, 30, 29, 28):
        try:
            return value.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    return value
