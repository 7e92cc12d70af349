# backend/chefhome/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import admin_disputes, bookings, chef_home, chefs, notifications, payments

__all__ = [
    "admin_disputes",
    "bookings",
    "chef_home",
    "chefs",
    "notifications",
    "payments",
]
