"""Create tour, slot, booking and Bokun product tables.

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 00:00:01
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "20261017_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "tours",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column(
            "time_slots",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("cancellation_cutoff_hours", sa.Integer(), server_default="24", nullable=False),
        sa.Column(
            "cancellation_cutoff_hours_with_participant",
            sa.Integer(),
            server_default="24",
            nullable=False,
        ),
        sa.Column("next_day_cutoff_time", sa.String(length=5), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint("max_participants > 0", name="ck_tours_max_participants_positive"),
    )
    op.create_index("ix_tours_type", "tours", ["type"], unique=True)

    op.create_table(
        "tour_time_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tour_type", sa.String(length=64), nullable=False),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("slot_time", sa.String(length=5), nullable=False),
        sa.Column("available_spots", sa.Integer(), nullable=False),
        sa.UniqueConstraint(
            "tour_type", "slot_date", "slot_time", name="uq_tour_time_slots_tour_date_time"
        ),
    )
    op.create_index("ix_tour_time_slots_tour_type", "tour_time_slots", ["tour_type"], unique=False)
    op.create_index("ix_tour_time_slots_slot_date", "tour_time_slots", ["slot_date"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tour_type", sa.String(length=64), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("booking_time", sa.String(length=5), nullable=False),
        sa.Column("adults", sa.Integer(), server_default="0", nullable=False),
        sa.Column("children", sa.Integer(), server_default="0", nullable=False),
        sa.Column("infants", sa.Integer(), server_default="0", nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=32), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("external_source", sa.String(length=32), nullable=True),
        sa.Column("bokun_booking_id", sa.String(length=64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    )
    op.create_index("ix_bookings_tour_type", "bookings", ["tour_type"], unique=False)
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)
    op.create_index("ix_bookings_bokun_booking_id", "bookings", ["bokun_booking_id"], unique=False)

    op.create_table(
        "bokun_products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("bokun_product_id", sa.String(length=64), nullable=False),
        sa.Column("local_tour_type", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.UniqueConstraint("bokun_product_id", name="uq_bokun_products_bokun_product_id"),
    )
    op.create_index(
        "ix_bokun_products_local_tour_type", "bokun_products", ["local_tour_type"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_bokun_products_local_tour_type", table_name="bokun_products")
    op.drop_table("bokun_products")
    op.drop_index("ix_bookings_bokun_booking_id", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_booking_date", table_name="bookings")
    op.drop_index("ix_bookings_tour_type", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_tour_time_slots_slot_date", table_name="tour_time_slots")
    op.drop_index("ix_tour_time_slots_tour_type", table_name="tour_time_slots")
    op.drop_table("tour_time_slots")
    op.drop_index("ix_tours_type", table_name="tours")
    op.drop_table("tours")
