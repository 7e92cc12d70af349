# backend/chefhome/repositories/factory.py
"""
Repository Factory for the Chef@Home platform.

Provides centralized creation of repository instances, ensuring
consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .chef_home_repository import ChefHomeAppointmentRepository, ChefHomeLocationRepository
    from .chef_repository import ChefRepository
    from .conflict_checker_repository import ConflictCheckerRepository
    from .dispute_repository import BookingDisputeRepository
    from .notification_repository import NotificationRepository
    from .payment_repository import PaymentRepository
    from .timeline_repository import TimelineRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_chef_repository(db: Session) -> "ChefRepository":
        from .chef_repository import ChefRepository

        return ChefRepository(db)

    @staticmethod
    def create_chef_home_location_repository(db: Session) -> "ChefHomeLocationRepository":
        from .chef_home_repository import ChefHomeLocationRepository

        return ChefHomeLocationRepository(db)

    @staticmethod
    def create_chef_home_appointment_repository(db: Session) -> "ChefHomeAppointmentRepository":
        from .chef_home_repository import ChefHomeAppointmentRepository

        return ChefHomeAppointmentRepository(db)

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        """Create repository for conflict checking queries."""
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_dispute_repository(db: Session) -> "BookingDisputeRepository":
        from .dispute_repository import BookingDisputeRepository

        return BookingDisputeRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> "PaymentRepository":
        from .payment_repository import PaymentRepository

        return PaymentRepository(db)

    @staticmethod
    def create_timeline_repository(db: Session) -> "TimelineRepository":
        from .timeline_repository import TimelineRepository

        return TimelineRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)
