"""
Actor passed explicitly into every reservation-engine call.

The engine keeps no ambient "current user"; routes resolve the actor
from the bearer token and hand it down to the services.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.enums import CLIENT_ROLES, ReservationParty, RoleName


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as supplied by the auth collaborator."""

    user_id: str
    role: RoleName

    @classmethod
    def system(cls) -> "Actor":
        return cls(user_id="system", role=RoleName.SYSTEM)

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN

    @property
    def is_chef(self) -> bool:
        return self.role == RoleName.CHEF

    @property
    def is_client(self) -> bool:
        return self.role in CLIENT_ROLES

    @property
    def is_system(self) -> bool:
        return self.role == RoleName.SYSTEM


def party_for(actor: Actor, client_id: str, chef_user_id: str) -> Optional[ReservationParty]:
    """Relationship of ``actor`` to one reservation; None when unrelated."""
    if actor.is_system:
        return ReservationParty.SYSTEM
    if actor.is_admin:
        return ReservationParty.ADMIN
    if actor.is_client and client_id == actor.user_id:
        return ReservationParty.CLIENT
    if actor.is_chef and chef_user_id == actor.user_id:
        return ReservationParty.CHEF
    return None
