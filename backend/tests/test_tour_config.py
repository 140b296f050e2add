from types import SimpleNamespace

import pytest

from tourdesk.availability.tour_config import load_tour_config, tour_config_from_row
from tourdesk.availability.tour_types import TourType


class FakeQuery:
    def __init__(self, rows):
        self.rows = rows

    def all(self):
        return list(self.rows)


class FakeSession:
    def __init__(self, tours=None):
        self.tours = list(tours or [])

    def query(self, model):
        return FakeQuery(self.tours)


def _tour(**overrides):
    values = {
        "type": "GION_TOUR",
        "max_participants": 12,
        "time_slots": ["09:00", "13:30"],
        "cancellation_cutoff_hours": 24,
        "cancellation_cutoff_hours_with_participant": 6,
        "next_day_cutoff_time": "",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_load_tour_config_by_type():
    config = load_tour_config(FakeSession([_tour(type="NIGHT_TOUR"), _tour()]), TourType.GION_TOUR)

    assert config.tour_type == "GION_TOUR"
    assert config.time_slots == ("09:00", "13:30")
    assert config.cancellation_cutoff_hours_with_participant == 6.0
    assert config.next_day_cutoff_time is None


def test_load_tour_config_missing_tour():
    with pytest.raises(LookupError):
        load_tour_config(FakeSession([_tour()]), TourType.MORNING_TOUR)


def test_malformed_configured_slots_are_dropped(caplog):
    with caplog.at_level("WARNING", logger="tourdesk.availability"):
        config = tour_config_from_row(_tour(time_slots=["18:00", "8pm", None, " 20:30 "]))

    assert config.time_slots == ("18:00", "20:30")
    assert "8pm" in caplog.text
