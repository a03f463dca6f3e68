"""
Customer / staff profile. Authentication lives elsewhere; the booking
engine only reads contact details for notifications.
"""

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from autocare.db.base import Base, TimestampMixin


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    is_staff = Column(Boolean, default=False, nullable=False)

    vehicles = relationship("Vehicle", back_populates="owner")

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email={self.email})>"
