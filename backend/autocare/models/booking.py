"""
Booking of a vehicle service against one time slot.

Key design decisions:
- `time_slot_id` never changes after insert; rescheduling means a new booking
- Status is a plain string column holding the literal tokens below, so the
  notification message table and stored rows agree on spelling
- `version` backs the guarded status UPDATE in the lifecycle
- Cancellation is a status, bookings are never deleted
"""

import enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from autocare.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


STATUS_VALUES = tuple(s.value for s in BookingStatus)


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    service_type_id = Column(Integer, ForeignKey("service_types.id"), nullable=False)
    time_slot_id = Column(Integer, ForeignKey("time_slots.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    notes = Column(Text, nullable=False, default="")
    version = Column(Integer, nullable=False, default=1)

    customer = relationship("Profile", lazy="raise")
    vehicle = relationship("Vehicle", lazy="raise")
    service_type = relationship("ServiceType", lazy="raise")
    time_slot = relationship("TimeSlot", lazy="raise")
    history = relationship(
        "BookingStatusHistory",
        back_populates="booking",
        lazy="raise",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_progress', 'completed', 'cancelled')",
            name="check_booking_status",
        ),
        Index("ix_bookings_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, slot={self.time_slot_id}, status={self.status})>"
