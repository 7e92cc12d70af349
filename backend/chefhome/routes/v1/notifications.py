# backend/chefhome/routes/v1/notifications.py
"""Notification feed of the current user."""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_current_actor, get_notification_service
from ...core.exceptions import DomainException
from ...principal import Actor
from ...schemas.base import StandardizedModel
from ...services.notification_service import NotificationService
from .common import handle_domain_exception

router = APIRouter(tags=["notifications-v1"])


class NotificationResponse(StandardizedModel):
    id: str
    reservation_kind: str
    reservation_id: str
    event: str
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    is_read: bool
    created_at: Optional[datetime] = None


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    actor: Actor = Depends(get_current_actor),
    notification_service: NotificationService = Depends(get_notification_service),
) -> List[NotificationResponse]:
    notifications = await asyncio.to_thread(notification_service.list_for_user, actor.user_id, unread_only)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    actor: Actor = Depends(get_current_actor),
    notification_service: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    try:
        notification = await asyncio.to_thread(notification_service.mark_read, actor.user_id, notification_id)
        return NotificationResponse.model_validate(notification)
    except DomainException as e:
        handle_domain_exception(e)
