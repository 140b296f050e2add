from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tourdesk.availability.cutoff import parse_slot_time
from tourdesk.availability.tour_types import parse_tour_type
from tourdesk.db.models import Tour


def _normalize_type(value: str) -> str:
    return parse_tour_type(value).value


def _validate_slots(value: list[str]) -> list[str]:
    cleaned = [slot.strip() for slot in value]
    for slot in cleaned:
        parse_slot_time(slot)
    return cleaned


def _validate_clock(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    parse_slot_time(value)
    return value.strip()


class CreateTourArgs(BaseModel):
    type: str = Field(min_length=1)
    name: str = Field(min_length=1)
    max_participants: int = Field(gt=0)
    time_slots: list[str] = Field(default_factory=list)
    cancellation_cutoff_hours: int = Field(default=24, ge=0)
    cancellation_cutoff_hours_with_participant: int = Field(default=24, ge=0)
    next_day_cutoff_time: str | None = None

    @field_validator("type")
    @classmethod
    def check_type(cls, value: str) -> str:
        return _normalize_type(value)

    @field_validator("time_slots")
    @classmethod
    def check_slots(cls, value: list[str]) -> list[str]:
        return _validate_slots(value)

    @field_validator("next_day_cutoff_time")
    @classmethod
    def check_clock(cls, value: str | None) -> str | None:
        return _validate_clock(value)


class UpdateTourArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    max_participants: int | None = Field(default=None, gt=0)
    time_slots: list[str] | None = None
    cancellation_cutoff_hours: int | None = Field(default=None, ge=0)
    cancellation_cutoff_hours_with_participant: int | None = Field(default=None, ge=0)
    next_day_cutoff_time: str | None = None

    # Omitted fields keep their value; only next_day_cutoff_time may be cleared.
    @field_validator(
        "name",
        "max_participants",
        "time_slots",
        "cancellation_cutoff_hours",
        "cancellation_cutoff_hours_with_participant",
        mode="before",
    )
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("field cannot be null")
        return value

    @field_validator("time_slots")
    @classmethod
    def check_slots(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else _validate_slots(value)

    @field_validator("next_day_cutoff_time")
    @classmethod
    def check_clock(cls, value: str | None) -> str | None:
        return _validate_clock(value)


def create_tour(db: Session, args: CreateTourArgs) -> Tour:
    if _find_tour_by_type(db, tour_type=args.type) is not None:
        raise ValueError("tour type already exists")

    tour = Tour(
        type=args.type,
        name=args.name,
        max_participants=args.max_participants,
        time_slots=list(args.time_slots),
        cancellation_cutoff_hours=args.cancellation_cutoff_hours,
        cancellation_cutoff_hours_with_participant=args.cancellation_cutoff_hours_with_participant,
        next_day_cutoff_time=args.next_day_cutoff_time,
    )
    db.add(tour)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if "type" in str(exc).lower():
            raise ValueError("tour type already exists") from exc
        raise
    return tour


def list_tours(db: Session) -> list[Tour]:
    return sorted(db.query(Tour).all(), key=lambda t: t.id)


def update_tour(db: Session, tour_id: int, args: UpdateTourArgs) -> Tour | None:
    tour = _find_tour(db, tour_id=tour_id)
    if tour is None:
        return None

    for field, value in args.model_dump(exclude_unset=True).items():
        setattr(tour, field, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    return tour


def serialize_tour(tour: Tour) -> dict[str, Any]:
    return {
        "id": tour.id,
        "type": tour.type,
        "name": tour.name,
        "max_participants": tour.max_participants,
        "time_slots": list(tour.time_slots or []),
        "cancellation_cutoff_hours": tour.cancellation_cutoff_hours,
        "cancellation_cutoff_hours_with_participant": tour.cancellation_cutoff_hours_with_participant,
        "next_day_cutoff_time": tour.next_day_cutoff_time,
        "created_at": tour.created_at.isoformat() if tour.created_at else None,
    }


def _find_tour(db: Session, tour_id: int) -> Tour | None:
    for tour in db.query(Tour).all():
        if tour.id == tour_id:
            return tour
    return None


def _find_tour_by_type(db: Session, tour_type: str) -> Tour | None:
    for tour in db.query(Tour).all():
        if tour.type == tour_type:
            return tour
    return None
