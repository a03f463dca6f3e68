from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String

from autocare.db.base import Base, TimestampMixin


class ServiceType(Base, TimestampMixin):
    __tablename__ = "service_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    vehicle_type = Column(String(10), nullable=False, default="both")  # car, bike, both
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("vehicle_type IN ('car', 'bike', 'both')", name="check_service_vehicle_type"),
        CheckConstraint("duration_minutes > 0", name="check_service_duration_positive"),
    )

    def accepts(self, vehicle_type: str) -> bool:
        return self.vehicle_type == "both" or self.vehicle_type == vehicle_type

    def __repr__(self) -> str:
        return f"<ServiceType(id={self.id}, name={self.name})>"
