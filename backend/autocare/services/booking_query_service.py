"""
Read side for customer and admin booking views.

Listings join the reference data the views display. Nothing here writes
booking status; status changes go through BookingLifecycle.
"""

from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from autocare.core.exceptions import NotFoundError
from autocare.models.booking import Booking, BookingStatus
from autocare.models.service_type import ServiceType
from autocare.models.vehicle import Vehicle


def _with_reference_data(query):
    return query.options(
        selectinload(Booking.vehicle),
        selectinload(Booking.service_type),
        selectinload(Booking.time_slot),
    )


async def get_booking(db: AsyncSession, booking_id: int) -> Booking:
    result = await db.execute(_with_reference_data(select(Booking).where(Booking.id == booking_id)))
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFoundError(f"Booking {booking_id} not found")
    return booking


async def list_bookings(
    db: AsyncSession,
    status: Optional[BookingStatus] = None,
    search: Optional[str] = None,
) -> list[Booking]:
    """
    Admin listing, newest first. `search` matches registration number,
    vehicle make or service name, case-insensitively.
    """
    query = (
        select(Booking)
        .join(Vehicle, Booking.vehicle_id == Vehicle.id)
        .join(ServiceType, Booking.service_type_id == ServiceType.id)
    )
    if status is not None:
        query = query.where(Booking.status == status.value)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                Vehicle.registration_number.ilike(pattern),
                Vehicle.make.ilike(pattern),
                ServiceType.name.ilike(pattern),
            )
        )

    result = await db.execute(
        _with_reference_data(query).order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def list_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    result = await db.execute(
        _with_reference_data(select(Booking).where(Booking.user_id == user_id))
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def status_counts(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(select(Booking.status, func.count()).group_by(Booking.status))
    counts = {s.value: 0 for s in BookingStatus}
    for status, count in result.all():
        counts[status] = count
    counts["all"] = sum(counts.values())
    return counts
