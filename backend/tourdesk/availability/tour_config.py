from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from tourdesk.availability.cutoff import MalformedSlotTimeError, parse_slot_time
from tourdesk.availability.models import TourConfig
from tourdesk.availability.tour_types import TourType
from tourdesk.db.models import Tour


logger = logging.getLogger("tourdesk.availability")


def load_tour_config(db: Session, tour_type: TourType) -> TourConfig:
    for tour in db.query(Tour).all():
        if tour.type == tour_type.value:
            return tour_config_from_row(tour)
    raise LookupError(f"Tour {tour_type.value} is not configured.")


def tour_config_from_row(tour: Tour) -> TourConfig:
    slots = []
    for value in tour.time_slots or []:
        try:
            parse_slot_time(value)
        except MalformedSlotTimeError:
            logger.warning("Dropping malformed configured slot. tour=%s time=%r", tour.type, value)
            continue
        slots.append(value.strip())

    return TourConfig(
        tour_type=tour.type,
        max_participants=int(tour.max_participants),
        time_slots=tuple(slots),
        cancellation_cutoff_hours=float(tour.cancellation_cutoff_hours),
        cancellation_cutoff_hours_with_participant=float(
            tour.cancellation_cutoff_hours_with_participant
        ),
        next_day_cutoff_time=(tour.next_day_cutoff_time or None),
    )
