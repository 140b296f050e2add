from __future__ import annotations

from datetime import date as date_type, datetime
from typing import Any

import dateparser
from pydantic import BaseModel, Field, ValidationError, model_validator


MAX_CALENDAR_RANGE_DAYS = 62


class AvailabilityArgs(BaseModel):
    tour: str = Field(min_length=1)
    party_size: int = Field(gt=0)
    date: date_type | None = None
    requested_date_text: str | None = None

    @model_validator(mode="after")
    def require_date(self) -> "AvailabilityArgs":
        if self.date is None and not (self.requested_date_text or "").strip():
            raise ValueError("date or requested_date_text is required")
        return self


class CalendarArgs(BaseModel):
    tour: str = Field(min_length=1)
    party_size: int = Field(default=1, gt=0)
    start_date: date_type
    end_date: date_type

    @model_validator(mode="after")
    def check_range(self) -> "CalendarArgs":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if (self.end_date - self.start_date).days >= MAX_CALENDAR_RANGE_DAYS:
            raise ValueError(f"range must be shorter than {MAX_CALENDAR_RANGE_DAYS} days")
        return self


class NextDateArgs(BaseModel):
    tour: str = Field(min_length=1)


def parse_availability_args(raw_args: dict[str, Any]) -> AvailabilityArgs:
    return AvailabilityArgs.model_validate(raw_args)


def parse_calendar_args(raw_args: dict[str, Any]) -> CalendarArgs:
    return CalendarArgs.model_validate(raw_args)


def parse_next_date_args(raw_args: dict[str, Any]) -> NextDateArgs:
    return NextDateArgs.model_validate(raw_args)


def resolve_requested_date(args: AvailabilityArgs, tour_timezone: str, now: datetime) -> date_type | None:
    if args.date is not None:
        return args.date

    parsed = dateparser.parse(
        args.requested_date_text or "",
        settings={
            "RETURN_AS_TIMEZONE_AWARE": True,
            "TIMEZONE": tour_timezone,
            "TO_TIMEZONE": tour_timezone,
            "RELATIVE_BASE": now.replace(tzinfo=None),
            "PREFER_DATES_FROM": "future",
        },
    )
    if parsed is None:
        return None
    return parsed.date()


def map_validation_error(error: ValidationError) -> dict[str, str]:
    return {
        "error_code": "INVALID_ARGS",
        "human_message": f"Invalid args: {error.errors()[0]['msg']}",
    }
