# backend/chefhome/core/enums.py
"""
Core enums for the Chef@Home platform.

Role names are supplied by the auth collaborator on every call; the
reservation engine re-checks them against its transition tables.
"""

from enum import Enum


class RoleName(str, Enum):
    """Account roles known to the reservation engine."""

    CLIENT = "client"
    B2B = "b2b"
    CHEF = "chef"
    ADMIN = "admin"
    SYSTEM = "system"


CLIENT_ROLES = frozenset({RoleName.CLIENT, RoleName.B2B})


class ReservationKind(str, Enum):
    """The two reservation flavours that share a chef's schedule."""

    SERVICE_BOOKING = "service_booking"
    CHEF_HOME_APPOINTMENT = "chef_home_appointment"


class ReservationParty(str, Enum):
    """Relationship between an actor and one reservation."""

    CLIENT = "client"
    CHEF = "chef"
    ADMIN = "admin"
    SYSTEM = "system"
