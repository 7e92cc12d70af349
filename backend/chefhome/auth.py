"""
Bearer-token handling for the auth collaborator.

Tokens carry ``sub`` (user id) and ``role`` claims, signed with the
shared secret. The engine trusts the claims but still re-checks the
role against its transition tables on every call.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError

from .core.config import settings
from .core.enums import RoleName
from .principal import Actor

logger = logging.getLogger(__name__)

oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def _secret_value(secret_obj: Any) -> str:
    getter = getattr(secret_obj, "get_secret_value", None)
    if callable(getter):
        return cast(str, getter())
    return cast(str, secret_obj)


def decode_access_token(token: str) -> Dict[str, Any]:
    payload_raw = jwt.decode(
        token,
        _secret_value(settings.secret_key),
        algorithms=[settings.algorithm],
        options={"verify_aud": False},
    )
    return cast(Dict[str, Any], payload_raw)


def create_access_token(
    user_id: str, role: RoleName | str, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token for a trusted internal caller.

    Args:
        user_id: Subject of the token
        role: Role claim checked by the reservation engine
        expires_delta: Optional expiration time delta
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    role_value = role.value if isinstance(role, RoleName) else str(role)
    to_encode = {"sub": user_id, "role": role_value, "exp": expire}
    encoded_jwt = cast(
        str,
        jwt.encode(to_encode, _secret_value(settings.secret_key), algorithm=settings.algorithm),
    )
    logger.debug(f"Created access token for user: {user_id}")
    return encoded_jwt


def actor_from_token(token: str) -> Actor:
    """
    Resolve the actor carried by a token.

    Raises:
        PyJWTError: If the token is invalid or expired
        ValueError: If required claims are missing or unknown
    """
    payload = decode_access_token(token)
    user_id = payload.get("sub")
    role = payload.get("role")
    if not isinstance(user_id, str) or not user_id:
        raise ValueError("Token payload missing 'sub' field")
    return Actor(user_id=user_id, role=RoleName(role))


async def get_current_actor(token: Optional[str] = Depends(oauth2_scheme_optional)) -> Actor:
    """Dependency returning the authenticated actor."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return actor_from_token(token)
    except (PyJWTError, ValueError) as e:
        logger.warning(f"Token validation failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
