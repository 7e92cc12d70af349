# backend/chefhome/core/exceptions.py
"""
Domain-specific exceptions for the Chef@Home reservation engine.

Business-rule outcomes are typed so the API layer can return a
machine-readable code instead of a bare 500.
"""

from datetime import date
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def _headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
            headers=self._headers(),
        )


class ValidationException(DomainException):
    """Raised when request validation fails before touching the store."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# Capacity rejections


class ReservationRejected(BusinessRuleException):
    """Base for structural rejections produced by the capacity resolver."""


class OutOfCapacityException(ReservationRejected):
    def __init__(self, guests: int, min_guests: int, max_guests: int):
        super().__init__(
            message=f"Guest count {guests} is outside the allowed range {min_guests}-{max_guests}",
            code="OUT_OF_CAPACITY",
            details={"guests": guests, "min_guests": min_guests, "max_guests": max_guests},
        )


class LeadTimeViolationException(ReservationRejected):
    def __init__(self, requested: date, earliest: date, latest: date, limit: str = "lead_time"):
        if limit == "advance_limit":
            message = f"Reservations can be made at most until {latest.isoformat()}"
        else:
            message = f"Reservations must be made for {earliest.isoformat()} or later"
        super().__init__(
            message=message,
            code="LEAD_TIME_VIOLATION",
            details={
                "requested_date": requested.isoformat(),
                "earliest_date": earliest.isoformat(),
                "latest_date": latest.isoformat(),
                "limit": limit,
            },
        )


class OutsideAvailabilityWindowException(ReservationRejected):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="OUTSIDE_AVAILABILITY_WINDOW",
            details=details or {},
        )


class BlackoutDateException(ReservationRejected):
    def __init__(self, blackout: date):
        super().__init__(
            message=f"The chef is unavailable on {blackout.isoformat()}",
            code="BLACKOUT_DATE",
            details={"date": blackout.isoformat()},
        )


class InvalidTimeRangeException(ReservationRejected):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_TIME_RANGE", details=details or {})


# Conflicts and transitions


class BookingConflictException(ConflictException):
    """Raised when a reservation overlaps an existing non-terminal reservation."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot conflicts with an existing reservation",
            code="CONFLICT_DETECTED",
            details=details or {},
        )


class InvalidTransitionException(ConflictException):
    def __init__(self, from_status: str, event: str):
        super().__init__(
            message=f"Cannot apply '{event}' to a reservation in status '{from_status}'",
            code="INVALID_TRANSITION",
            details={"from": from_status, "event": event},
        )
        self.from_status = from_status
        self.event = event


class TransitionNotPermittedException(ForbiddenException):
    def __init__(self, event: str, party: str):
        super().__init__(
            message=f"A {party} may not trigger '{event}' on this reservation",
            code="TRANSITION_NOT_PERMITTED",
            details={"event": event, "party": party},
        )


# Disputes and money


class NotDisputedException(ConflictException):
    def __init__(self, booking_id: str, current_status: str):
        super().__init__(
            message="Only disputed bookings can be resolved",
            code="NOT_DISPUTED",
            details={"booking_id": booking_id, "status": current_status},
        )


class RefundExceedsCapturedException(BusinessRuleException):
    def __init__(self, requested: Any, refundable: Any):
        super().__init__(
            message="Refund amount exceeds the amount captured for this booking",
            code="REFUND_EXCEEDS_CAPTURED",
            details={"requested": str(requested), "refundable": str(refundable)},
        )


class PaymentProviderException(DomainException):
    """Payment collaborator failed; no reservation state was changed."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="PAYMENT_PROVIDER_ERROR", details=details or {})


class BusyException(DomainException):
    """Retry budget exhausted while competing for a chef's schedule."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: str = "The chef's schedule is busy, please retry",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="BUSY", details=details or {})

    def _headers(self) -> Optional[Dict[str, str]]:
        return {"Retry-After": "1"}


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
