"""
Append-only audit trail of booking status changes.

One row per committed transition. Rows are never updated or deleted;
ordering by (created_at, id) replays the booking's full status path.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from autocare.db.base import Base, utcnow


class BookingStatusHistory(Base):
    __tablename__ = "booking_status_history"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    old_status = Column(String(20), nullable=True)  # NULL only for the creation record
    new_status = Column(String(20), nullable=False)
    changed_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    booking = relationship("Booking", back_populates="history")

    __table_args__ = (
        Index("ix_booking_status_history_booking_created", "booking_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<BookingStatusHistory(booking={self.booking_id}, "
            f"{self.old_status} -> {self.new_status})>"
        )
