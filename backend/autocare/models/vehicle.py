"""
Vehicle reference data. CRUD is handled outside the booking engine.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from autocare.db.base import Base, TimestampMixin

VEHICLE_TYPES = ("car", "bike")


class Vehicle(Base, TimestampMixin):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    vehicle_type = Column(String(10), nullable=False)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    registration_number = Column(String(32), nullable=False, unique=True)

    owner = relationship("Profile", back_populates="vehicles")

    __table_args__ = (
        CheckConstraint("vehicle_type IN ('car', 'bike')", name="check_vehicle_type"),
    )

    def __repr__(self) -> str:
        return f"<Vehicle(id={self.id}, reg={self.registration_number})>"
