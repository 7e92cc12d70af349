# backend/chefhome/services/notification_service.py
"""
Notification collaborator adapter.

Fire-and-forget: every successful reservation creation or transition
emits ``{reservation_id, event}`` to the counter-parties as an in-app
notification plus a structured log line. Delivery runs after the
reservation commit in its own transaction; a failure here is logged and
never reaches the caller.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.constants import BRAND_NAME
from ..core.exceptions import NotFoundException
from ..events.reservation_events import ReservationCreated, ReservationTransitioned
from ..models.notification import Notification
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

ReservationEvent = Union[ReservationCreated, ReservationTransitioned]

_TITLES: Dict[str, str] = {
    "created": "New reservation request",
    "accept": "Reservation confirmed",
    "reject": "Reservation declined",
    "decline": "Reservation declined",
    "cancel": "Reservation cancelled",
    "start": "Your event has started",
    "complete": "Event completed, leave a review",
    "dispute": "A dispute was opened",
    "resolve_refund": "Dispute resolved with a refund",
    "resolve_release": "Dispute resolved",
    "reminder": "Upcoming event reminder",
    "payment_captured": "Payment received",
}


class NotificationService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_notification_repository(db)

    @staticmethod
    def title_for(event: str) -> str:
        return _TITLES.get(event, f"{BRAND_NAME} update")

    def publish(self, event: ReservationEvent) -> List[Notification]:
        """Deliver an event; never raises."""
        payload = event.to_dict()
        payload["occurred_at"] = event.occurred_at.isoformat()
        return self.notify(
            recipients=event.recipients,
            reservation_kind=event.reservation_kind,
            reservation_id=event.reservation_id,
            event=event.event,
            data=payload,
        )

    def notify(
        self,
        *,
        recipients: Iterable[str],
        reservation_kind: str,
        reservation_id: str,
        event: str,
        message: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> List[Notification]:
        created: List[Notification] = []
        unique_recipients = list(dict.fromkeys(r for r in recipients if r))
        try:
            with self.transaction():
                for recipient_id in unique_recipients:
                    created.append(
                        self.repository.create(
                            recipient_id=recipient_id,
                            reservation_kind=reservation_kind,
                            reservation_id=reservation_id,
                            event=event,
                            title=self.title_for(event),
                            message=message or f"Reservation {reservation_id}: {event}",
                            data=data,
                        )
                    )
        except Exception as exc:
            logger.warning(
                "reservation_notification_failed",
                extra={
                    "reservation_id": reservation_id,
                    "event": event,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            return []

        logger.info(
            "reservation_notification_sent",
            extra={
                "reservation_id": reservation_id,
                "event": event,
                "recipients": len(unique_recipients),
            },
        )
        return created

    def list_for_user(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        return self.repository.list_for_recipient(user_id, unread_only=unread_only)

    def mark_read(self, user_id: str, notification_id: str) -> Notification:
        notification = self.repository.get_by_id(notification_id, load_relationships=False)
        if not notification or notification.recipient_id != user_id:
            raise NotFoundException("Notification not found", code="NOT_FOUND")
        with self.transaction():
            notification.mark_read()
        return notification
