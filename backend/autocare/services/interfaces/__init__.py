"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .channel import NotificationChannel

__all__ = ['NotificationChannel']
