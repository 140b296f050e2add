import asyncio
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from tourdesk.availability.cache import AvailabilityCache
from tourdesk.availability.engine import ReconciliationEngine
from tourdesk.availability.models import (
    SOURCE_DATABASE,
    SOURCE_EXTERNAL,
    DayAvailability,
    FetchError,
    TimeSlot,
    TourConfig,
)


TOKYO = ZoneInfo("Asia/Tokyo")
TODAY = date(2026, 10, 17)


class FakeClock:
    def __init__(self, value=1_800_000_000.0):
        self.value = value

    def __call__(self):
        return self.value


class FakeSource:
    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    async def fetch_day(self, target_date):
        self.calls.append(target_date)
        response = self.responses.get(target_date)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return DayAvailability(
                date_key=target_date.isoformat(),
                has_availability=False,
                source=SOURCE_EXTERNAL,
            )
        return response


def _config(**overrides):
    values = {
        "tour_type": "NIGHT_TOUR",
        "max_participants": 10,
        "time_slots": ("10:00", "14:00"),
        "cancellation_cutoff_hours": 24,
        "cancellation_cutoff_hours_with_participant": 12,
        "next_day_cutoff_time": None,
    }
    values.update(overrides)
    return TourConfig(**values)


def _engine(config=None, participants=None, source=None, now=None, clock=None):
    current = now or datetime(2026, 10, 17, 9, 0, tzinfo=TOKYO)
    return ReconciliationEngine(
        config=config or _config(),
        participants=participants or {},
        source=source or FakeSource(),
        cache=AvailabilityCache(ttl_seconds=300, clock=clock or FakeClock()),
        now=lambda: current,
    )


def _external_day(target_date, *slots):
    return DayAvailability(
        date_key=target_date.isoformat(),
        has_availability=len(slots) > 0,
        time_slots=[TimeSlot(time=t, available_spots=s) for t, s in slots],
        source=SOURCE_EXTERNAL,
    )


def test_partially_booked_slot_drops_out_for_larger_party():
    target = TODAY + timedelta(days=2)
    engine = _engine(participants={target.isoformat(): {"10:00": 8, "14:00": 0}})

    assert engine.get_available_times(target, 3) == ["14:00"]


def test_local_capacity_boundary_without_external_data():
    target = TODAY + timedelta(days=5)
    engine = _engine(participants={target.isoformat(): {"10:00": 7, "14:00": 7}})

    assert engine.get_available_times(target, 3) == ["10:00", "14:00"]
    assert engine.get_available_times(target, 4) == []


def test_external_spots_override_local_capacity():
    target = TODAY + timedelta(days=5)
    source = FakeSource({target: _external_day(target, ("10:00", 2), ("14:00", 6))})
    engine = _engine(source=source)

    asyncio.run(engine.preload(target, target))

    assert engine.get_available_times(target, 3) == ["14:00"]
    assert engine.get_available_times(target, 2) == ["10:00", "14:00"]


def test_external_slots_keep_source_order():
    target = TODAY + timedelta(days=5)
    source = FakeSource({target: _external_day(target, ("19:30", 5), ("09:00", 5))})
    engine = _engine(source=source)

    asyncio.run(engine.preload(target, target))

    assert engine.get_available_times(target, 1) == ["19:30", "09:00"]


def test_database_source_with_no_rows_is_full():
    target = TODAY + timedelta(days=5)
    empty = DayAvailability(
        date_key=target.isoformat(),
        has_availability=False,
        time_slots=[],
        source=SOURCE_DATABASE,
    )
    engine = _engine(source=FakeSource({target: empty}))

    asyncio.run(engine.preload(target, target))

    assert engine.get_available_times(target, 1) == []
    assert engine.is_date_full(target, 1) is True


def test_cutoff_relaxes_once_slot_has_participants():
    now = datetime(2026, 10, 17, 12, 0, tzinfo=TOKYO)
    tomorrow = TODAY + timedelta(days=1)

    empty_engine = _engine(now=now)
    assert empty_engine.get_available_times(tomorrow, 1) == ["14:00"]

    booked_engine = _engine(now=now, participants={tomorrow.isoformat(): {"10:00": 1, "14:00": 0}})
    assert booked_engine.get_available_times(tomorrow, 1) == ["10:00", "14:00"]


def test_next_day_cutoff_closes_tomorrow():
    tomorrow = TODAY + timedelta(days=1)
    config = _config(
        cancellation_cutoff_hours=0,
        cancellation_cutoff_hours_with_participant=0,
        next_day_cutoff_time="18:00",
    )

    before = _engine(config=config, now=datetime(2026, 10, 17, 17, 59, tzinfo=TOKYO))
    after = _engine(config=config, now=datetime(2026, 10, 17, 18, 1, tzinfo=TOKYO))

    assert before.get_available_times(tomorrow, 1) == ["10:00", "14:00"]
    assert after.get_available_times(tomorrow, 1) == []
    assert after.get_available_times(TODAY + timedelta(days=2), 1) == ["10:00", "14:00"]


def test_malformed_external_time_is_rejected():
    target = TODAY + timedelta(days=5)
    source = FakeSource({target: _external_day(target, ("10h00", 5), ("14:00", 5))})
    engine = _engine(source=source)

    asyncio.run(engine.preload(target, target))

    assert engine.get_available_times(target, 1) == ["14:00"]


def test_preload_skips_fresh_entries():
    clock = FakeClock()
    source = FakeSource()
    engine = _engine(source=source, clock=clock)
    start = TODAY + timedelta(days=3)
    end = start + timedelta(days=2)

    asyncio.run(engine.preload(start, end))
    loaded = asyncio.run(engine.preload(start, end))

    assert len(source.calls) == 3
    assert sorted(loaded) == ["2026-10-20", "2026-10-21", "2026-10-22"]

    clock.value += 300
    asyncio.run(engine.preload(start, end))
    assert len(source.calls) == 6


def test_preload_falls_back_per_date_on_failure():
    first = TODAY + timedelta(days=3)
    second = first + timedelta(days=1)
    third = second + timedelta(days=1)
    source = FakeSource(
        {
            first: _external_day(first, ("10:00", 4)),
            second: FetchError(date_key=second.isoformat(), reason="bokun_error"),
            third: RuntimeError("connection reset"),
        }
    )
    engine = _engine(source=source)

    loaded = asyncio.run(engine.preload(first, third))

    assert loaded[first.isoformat()].fallback is False
    for day in (loaded[second.isoformat()], loaded[third.isoformat()]):
        assert day.fallback is True
        assert day.has_availability is True
        assert [slot.time for slot in day.time_slots] == ["10:00", "14:00"]
        assert all(slot.available_spots is None for slot in day.time_slots)


def test_fallback_day_uses_local_capacity():
    target = TODAY + timedelta(days=4)
    source = FakeSource({target: FetchError(date_key=target.isoformat(), reason="bokun_error")})
    engine = _engine(source=source, participants={target.isoformat(): {"10:00": 9, "14:00": 2}})

    asyncio.run(engine.preload(target, target))

    assert engine.get_available_times(target, 2) == ["14:00"]


def test_is_date_full_without_any_data_is_false():
    engine = _engine()

    assert engine.is_date_full(TODAY + timedelta(days=9), 50) is False


def test_is_date_full_from_local_ledger():
    target = TODAY + timedelta(days=9)
    engine = _engine(participants={target.isoformat(): {"10:00": 9, "14:00": 10}})

    assert engine.is_date_full(target, 1) is False
    assert engine.is_date_full(target, 2) is True


def test_is_date_full_from_external_data():
    target = TODAY + timedelta(days=9)
    source = FakeSource({target: _external_day(target, ("10:00", 1))})
    engine = _engine(source=source)

    asyncio.run(engine.preload(target, target))

    assert engine.is_date_full(target, 1) is False
    assert engine.is_date_full(target, 2) is True


def test_is_date_full_ignores_cutoff():
    now = datetime(2026, 10, 17, 12, 0, tzinfo=TOKYO)
    tomorrow = TODAY + timedelta(days=1)
    source = FakeSource({tomorrow: _external_day(tomorrow, ("10:00", 5))})
    engine = _engine(source=source, now=now)

    asyncio.run(engine.preload(tomorrow, tomorrow))

    assert engine.get_available_times(tomorrow, 1) == []
    assert engine.is_date_full(tomorrow, 1) is False


def test_find_next_available_date_skips_errors():
    source = FakeSource(
        {
            TODAY + timedelta(days=1): FetchError(date_key="2026-10-18", reason="bokun_error"),
            TODAY + timedelta(days=3): _external_day(TODAY + timedelta(days=3), ("10:00", 2)),
        }
    )
    engine = _engine(source=source)

    assert asyncio.run(engine.find_next_available_date()) == TODAY + timedelta(days=3)
    assert source.calls[0] == TODAY


def test_find_next_available_date_defaults_to_today():
    source = FakeSource()
    engine = _engine(source=source)

    assert asyncio.run(engine.find_next_available_date()) == TODAY
    assert source.calls[-1] == date(2027, 4, 17)


def test_find_next_available_date_continues_after_source_raises():
    source = FakeSource(
        {
            TODAY: RuntimeError("slot table locked"),
            TODAY + timedelta(days=1): ValueError("bad row"),
            TODAY + timedelta(days=2): _external_day(TODAY + timedelta(days=2), ("10:00", 2)),
        }
    )
    engine = _engine(source=source)

    assert asyncio.run(engine.find_next_available_date()) == TODAY + timedelta(days=2)
    assert len(source.calls) == 3


def test_past_dates_are_disabled():
    engine = _engine()

    assert engine.is_date_disabled(TODAY - timedelta(days=1), 1) is True
    assert engine.is_date_full(TODAY - timedelta(days=1), 1) is False


def test_tomorrow_disabled_after_next_day_cutoff():
    config = _config(
        cancellation_cutoff_hours=0,
        cancellation_cutoff_hours_with_participant=0,
        next_day_cutoff_time="18:00",
    )
    tomorrow = TODAY + timedelta(days=1)

    before = _engine(config=config, now=datetime(2026, 10, 17, 17, 59, tzinfo=TOKYO))
    after = _engine(config=config, now=datetime(2026, 10, 17, 18, 1, tzinfo=TOKYO))

    assert before.is_date_disabled(tomorrow, 1) is False
    assert after.is_date_disabled(tomorrow, 1) is True


def test_date_disabled_when_every_slot_is_past_cutoff():
    now = datetime(2026, 10, 17, 15, 0, tzinfo=TOKYO)
    engine = _engine(now=now)

    assert engine.is_date_disabled(TODAY + timedelta(days=1), 1) is True
    assert engine.is_date_full(TODAY + timedelta(days=1), 1) is False
    assert engine.is_date_disabled(TODAY + timedelta(days=2), 1) is False


def test_date_disabled_from_fresh_external_data():
    target = TODAY + timedelta(days=5)
    sold_out = TODAY + timedelta(days=6)
    source = FakeSource(
        {
            target: _external_day(target, ("10:00", 2), ("14:00", 3)),
            sold_out: _external_day(sold_out),
        }
    )
    engine = _engine(source=source)

    asyncio.run(engine.preload(target, sold_out))

    assert engine.is_date_disabled(target, 3) is False
    assert engine.is_date_disabled(target, 4) is True
    assert engine.is_date_disabled(sold_out, 1) is True


def test_fallback_date_disabled_only_when_ledger_is_full():
    target = TODAY + timedelta(days=5)
    source = FakeSource({target: FetchError(date_key=target.isoformat(), reason="bokun_error")})
    engine = _engine(source=source, participants={target.isoformat(): {"10:00": 9, "14:00": 10}})

    asyncio.run(engine.preload(target, target))

    assert engine.is_date_disabled(target, 1) is False
    assert engine.is_date_disabled(target, 2) is True
