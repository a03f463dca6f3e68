"""
Time slot with bounded capacity.

Key design decisions:
- `booked_count` is denormalized so capacity checks are a single guarded
  UPDATE instead of a COUNT over bookings
- CHECK constraints are the final safety net: 0 <= booked_count <= capacity
- Index on (date, start_time) serves the per-day slot listing
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Date, Index, Integer, Time

from autocare.db.base import Base, TimestampMixin


class TimeSlot(Base, TimestampMixin):
    __tablename__ = "time_slots"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    capacity = Column(Integer, nullable=False)
    booked_count = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_slot_capacity_positive"),
        CheckConstraint("booked_count >= 0", name="check_slot_booked_non_negative"),
        CheckConstraint("booked_count <= capacity", name="check_slot_booked_lte_capacity"),
        Index("ix_time_slots_date_start", "date", "start_time"),
    )

    @property
    def remaining(self) -> int:
        return self.capacity - self.booked_count

    def __repr__(self) -> str:
        return f"<TimeSlot(id={self.id}, date={self.date}, booked={self.booked_count}/{self.capacity})>"
