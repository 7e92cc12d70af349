# backend/chefhome/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...services.availability_store import AvailabilityStore
from ...services.booking_service import BookingService
from ...services.chef_home_service import ChefHomeService
from ...services.conflict_checker import ConflictChecker
from ...services.dispute_service import DisputeService
from ...services.notification_service import NotificationService
from ...services.payment_provider import PaymentProvider, StripePaymentProvider
from ...services.payment_service import PaymentService
from ...services.pricing_service import PricingService
from ...services.refund_policy import (
    CancellationRefundPolicy,
    FullRefundPolicy,
    NoticePeriodRefundPolicy,
)
from ...services.reservation_service import ReservationService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _stripe_provider_singleton() -> Optional[PaymentProvider]:
    if settings.stripe_secret_key is None:
        logger.warning("STRIPE_SECRET_KEY not set; payment operations will be refused")
        return None
    return StripePaymentProvider()


def get_payment_provider() -> Optional[PaymentProvider]:
    """Payment collaborator; ``None`` when no provider is configured."""
    return _stripe_provider_singleton()


def get_refund_policy() -> CancellationRefundPolicy:
    if settings.refund_policy == "notice_period":
        return NoticePeriodRefundPolicy()
    return FullRefundPolicy()


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_pricing_service() -> PricingService:
    """Provide pricing service instance for dependency injection."""
    return PricingService()


def get_payment_service(
    db: Session = Depends(get_db),
    provider: Optional[PaymentProvider] = Depends(get_payment_provider),
) -> PaymentService:
    return PaymentService(db, provider)


def get_reservation_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> ReservationService:
    """
    Get reservation service instance with all dependencies.

    Args:
        db: Database session
        notification_service: Fire-and-forget notifier
        pricing_service: Booking price calculator

    Returns:
        ReservationService instance
    """
    return ReservationService(
        db, notification_service=notification_service, pricing_service=pricing_service
    )


def get_booking_service(
    db: Session = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service),
    notification_service: NotificationService = Depends(get_notification_service),
    refund_policy: CancellationRefundPolicy = Depends(get_refund_policy),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        payment_service: Refund path for cancellations
        notification_service: Fire-and-forget notifier
        refund_policy: Cancellation refund policy

    Returns:
        BookingService instance
    """
    return BookingService(
        db,
        payment_service=payment_service,
        refund_policy=refund_policy,
        notification_service=notification_service,
    )


def get_dispute_service(
    db: Session = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> DisputeService:
    return DisputeService(db, payment_service, notification_service)


def get_chef_home_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> ChefHomeService:
    return ChefHomeService(db, notification_service)


def get_availability_store(db: Session = Depends(get_db)) -> AvailabilityStore:
    return AvailabilityStore(db)


def get_conflict_checker(db: Session = Depends(get_db)) -> ConflictChecker:
    """
    Get conflict checker service instance.

    Args:
        db: Database session

    Returns:
        ConflictChecker instance
    """
    return ConflictChecker(db)
