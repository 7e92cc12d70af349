# backend/chefhome/repositories/payment_repository.py
"""
Payment Repository for the Chef@Home platform.

Intent records, refund attempts and the append-only payment ledger.
"""

from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.payment import (
    OPEN_REFUND_STATUSES,
    PaymentEvent,
    PaymentIntent,
    RefundAttempt,
    RefundAttemptStatus,
)
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PaymentRepository(BaseRepository[PaymentIntent]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentIntent)
        self.logger = logging.getLogger(__name__)

    def get_intent_by_provider_id(self, provider_intent_id: str) -> Optional[PaymentIntent]:
        return self.find_one_by(provider_intent_id=provider_intent_id)

    def create_payment_event(
        self,
        booking_id: str,
        event_type: str,
        amount: Decimal,
        provider_reference: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> PaymentEvent:
        try:
            event = PaymentEvent(
                booking_id=booking_id,
                event_type=event_type,
                amount=amount,
                provider_reference=provider_reference,
                data=data,
            )
            self.db.add(event)
            self.db.flush()
            return event
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to create payment event: {str(e)}")
            raise RepositoryException(f"Failed to create payment event: {str(e)}") from e

    def list_payment_events(self, booking_id: str) -> List[PaymentEvent]:
        """Ledger entries for a booking, oldest first."""
        try:
            return (
                self.db.query(PaymentEvent)
                .filter(PaymentEvent.booking_id == booking_id)
                .order_by(PaymentEvent.created_at, PaymentEvent.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing payment events for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to list payment events: {str(e)}") from e

    def get_open_refund_attempt(self, booking_id: str) -> Optional[RefundAttempt]:
        try:
            return (
                self.db.query(RefundAttempt)
                .filter(
                    RefundAttempt.booking_id == booking_id,
                    RefundAttempt.status.in_(OPEN_REFUND_STATUSES),
                )
                .order_by(RefundAttempt.created_at.desc())
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading open refund for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load refund attempt: {str(e)}") from e

    def create_refund_attempt(
        self, booking_id: str, amount: Decimal, reason: str, idempotency_key: str
    ) -> RefundAttempt:
        try:
            attempt = RefundAttempt(
                booking_id=booking_id,
                amount=amount,
                reason=reason[:500],
                idempotency_key=idempotency_key,
                status=RefundAttemptStatus.PENDING.value,
            )
            self.db.add(attempt)
            self.db.flush()
            return attempt
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to create refund attempt: {str(e)}")
            raise RepositoryException(f"Failed to create refund attempt: {str(e)}") from e
