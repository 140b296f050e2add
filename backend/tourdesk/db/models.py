from datetime import date, datetime
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, String, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from tourdesk.db.base import Base


class Tour(Base):
    __tablename__ = "tours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    type: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    time_slots: Mapped[list[Any]] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb"), default=list
    )
    cancellation_cutoff_hours: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default="24"
    )
    cancellation_cutoff_hours_with_participant: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default="24"
    )
    next_day_cutoff_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class TourTimeSlot(Base):
    __tablename__ = "tour_time_slots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tour_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    slot_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    slot_time: Mapped[str] = mapped_column(String(5), nullable=False)
    available_spots: Mapped[int] = mapped_column(Integer, nullable=False)


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tour_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    booking_time: Mapped[str] = mapped_column(String(5), nullable=False)
    adults: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    children: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    infants: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    external_source: Mapped[str | None] = mapped_column(String(32), nullable=True)
    bokun_booking_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class BokunProduct(Base):
    __tablename__ = "bokun_products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    bokun_product_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    local_tour_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
