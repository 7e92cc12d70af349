# backend/chefhome/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

The auth collaborator issues bearer tokens; these dependencies turn them
into an ``Actor`` and gate admin-only routes.
"""

import logging

from fastapi import Depends, HTTPException, status

from ...auth import get_current_actor
from ...principal import Actor

logger = logging.getLogger(__name__)


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Dependency that only lets administrators through."""
    if not actor.is_admin:
        logger.info(f"Admin route refused for user {actor.user_id} ({actor.role.value})")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Admin access required", "code": "TRANSITION_NOT_PERMITTED"},
        )
    return actor


__all__ = ["get_current_actor", "require_admin"]
