"""
Request dependencies for the booking engine components.

The components are built once in the app lifespan and kept on app.state;
tests swap them through app.dependency_overrides.
"""

from fastapi import Request

from autocare.services.booking_lifecycle import BookingLifecycle
from autocare.services.notification_dispatcher import NotificationDispatcher
from autocare.services.slot_allocator import SlotAllocator


def get_allocator(request: Request) -> SlotAllocator:
    return request.app.state.allocator


def get_lifecycle(request: Request) -> BookingLifecycle:
    return request.app.state.lifecycle


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher
