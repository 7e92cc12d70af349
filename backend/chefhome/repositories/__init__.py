# backend/chefhome/repositories/__init__.py
"""
Repository layer for the Chef@Home platform.

Repositories flush but never commit; services own transactions.
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .chef_home_repository import ChefHomeAppointmentRepository, ChefHomeLocationRepository
from .chef_repository import ChefRepository
from .conflict_checker_repository import ConflictCheckerRepository
from .dispute_repository import BookingDisputeRepository
from .factory import RepositoryFactory
from .notification_repository import NotificationRepository
from .payment_repository import PaymentRepository
from .timeline_repository import TimelineRepository

__all__ = [
    "BaseRepository",
    "BookingDisputeRepository",
    "BookingRepository",
    "ChefHomeAppointmentRepository",
    "ChefHomeLocationRepository",
    "ChefRepository",
    "ConflictCheckerRepository",
    "NotificationRepository",
    "PaymentRepository",
    "RepositoryFactory",
    "TimelineRepository",
]
