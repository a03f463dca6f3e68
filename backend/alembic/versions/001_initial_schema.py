"""Initial schema: profiles, vehicles, service types, time slots, bookings, status history.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BOOKING_STATUSES = "('pending', 'confirmed', 'in_progress', 'completed', 'cancelled')"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("is_staff", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("ix_profiles_id", "profiles", ["id"])
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("vehicle_type", sa.String(10), nullable=False),
        sa.Column("make", sa.String(100), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("registration_number", sa.String(32), nullable=False, unique=True),
        *_timestamps(),
        sa.CheckConstraint("vehicle_type IN ('car', 'bike')", name="check_vehicle_type"),
    )
    op.create_index("ix_vehicles_id", "vehicles", ["id"])
    op.create_index("ix_vehicles_user_id", "vehicles", ["user_id"])

    op.create_table(
        "service_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("vehicle_type", sa.String(10), nullable=False, server_default=sa.text("'both'")),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("vehicle_type IN ('car', 'bike', 'both')", name="check_service_vehicle_type"),
        sa.CheckConstraint("duration_minutes > 0", name="check_service_duration_positive"),
    )
    op.create_index("ix_service_types_id", "service_types", ["id"])

    # CAPACITY CONSTRAINTS: the allocator's guarded UPDATE keeps
    # booked_count in range; these CHECKs make any other writer fail loudly.
    op.create_table(
        "time_slots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("booked_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("capacity > 0", name="check_slot_capacity_positive"),
        sa.CheckConstraint("booked_count >= 0", name="check_slot_booked_non_negative"),
        sa.CheckConstraint("booked_count <= capacity", name="check_slot_booked_lte_capacity"),
    )
    op.create_index("ix_time_slots_id", "time_slots", ["id"])
    # The booking form lists one day's slots ordered by start time
    op.create_index("ix_time_slots_date_start", "time_slots", ["date", "start_time"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), sa.ForeignKey("vehicles.id"), nullable=False),
        sa.Column("service_type_id", sa.Integer(), sa.ForeignKey("service_types.id"), nullable=False),
        sa.Column("time_slot_id", sa.Integer(), sa.ForeignKey("time_slots.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("notes", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint(f"status IN {BOOKING_STATUSES}", name="check_booking_status"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_vehicle_id", "bookings", ["vehicle_id"])
    op.create_index("ix_bookings_time_slot_id", "bookings", ["time_slot_id"])
    # Admin dashboard: filter by status, newest first
    op.create_index("ix_bookings_status_created", "bookings", ["status", "created_at"])

    op.create_table(
        "booking_status_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("old_status", sa.String(20), nullable=True),
        sa.Column("new_status", sa.String(20), nullable=False),
        sa.Column("changed_by", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_booking_status_history_id", "booking_status_history", ["id"])
    op.create_index(
        "ix_booking_status_history_booking_created",
        "booking_status_history",
        ["booking_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("booking_status_history")
    op.drop_table("bookings")
    op.drop_table("time_slots")
    op.drop_table("service_types")
    op.drop_table("vehicles")
    op.drop_table("profiles")
