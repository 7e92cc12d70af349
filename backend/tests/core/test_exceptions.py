from datetime import date

from chefhome.core.exceptions import (
    BookingConflictException,
    BusyException,
    InvalidTransitionException,
    LeadTimeViolationException,
    NotDisputedException,
    OutOfCapacityException,
    PaymentProviderException,
    RefundExceedsCapturedException,
    TransitionNotPermittedException,
)


def test_error_codes_and_statuses():
    cases = [
        (OutOfCapacityException(9, 2, 6), "OUT_OF_CAPACITY", 422),
        (
            LeadTimeViolationException(date(2030, 1, 8), date(2030, 1, 10), date(2030, 4, 7)),
            "LEAD_TIME_VIOLATION",
            422,
        ),
        (BookingConflictException(), "CONFLICT_DETECTED", 409),
        (InvalidTransitionException("completed", "cancel"), "INVALID_TRANSITION", 409),
        (TransitionNotPermittedException("accept", "client"), "TRANSITION_NOT_PERMITTED", 403),
        (NotDisputedException("b1", "confirmed"), "NOT_DISPUTED", 409),
        (RefundExceedsCapturedException("50", "20"), "REFUND_EXCEEDS_CAPTURED", 422),
        (PaymentProviderException("down"), "PAYMENT_PROVIDER_ERROR", 502),
        (BusyException(), "BUSY", 503),
    ]
    for exc, code, status_code in cases:
        assert exc.code == code
        assert exc.status_code == status_code
        http_exc = exc.to_http_exception()
        assert http_exc.status_code == status_code
        assert http_exc.detail["code"] == code


def test_busy_carries_retry_after():
    assert BusyException().to_http_exception().headers == {"Retry-After": "1"}


def test_lead_time_details_name_the_bound():
    exc = LeadTimeViolationException(
        date(2030, 1, 8), date(2030, 1, 10), date(2030, 4, 7), limit="lead_time"
    )
    assert exc.details["earliest_date"] == "2030-01-10"
    assert exc.details["limit"] == "lead_time"
