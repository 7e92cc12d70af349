# backend/chefhome/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_actor, require_admin
from .database import get_db
from .services import (
    get_availability_store,
    get_booking_service,
    get_chef_home_service,
    get_conflict_checker,
    get_dispute_service,
    get_notification_service,
    get_payment_provider,
    get_payment_service,
    get_reservation_service,
)

__all__ = [
    # Auth
    "get_current_actor",
    "require_admin",
    # Database
    "get_db",
    # Services
    "get_availability_store",
    "get_booking_service",
    "get_chef_home_service",
    "get_conflict_checker",
    "get_dispute_service",
    "get_notification_service",
    "get_payment_provider",
    "get_payment_service",
    "get_reservation_service",
]
