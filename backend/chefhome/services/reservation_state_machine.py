# backend/chefhome/services/reservation_state_machine.py
"""
Reservation state machine.

Pure transition tables for service bookings and chef-home appointments.
Each ``(status, event)`` pair maps to the target status, the parties
allowed to trigger it and the side effect the caller must carry out.
Any pair that is not listed is an invalid transition; terminal statuses
have no outgoing entries.

This module performs no I/O. Services plan a transition here first, run
the side effect, and only then persist the new status.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from ..core.enums import ReservationParty
from ..core.exceptions import InvalidTransitionException, TransitionNotPermittedException
from ..models.booking import BookingStatus
from ..models.chef_home import AppointmentStatus

CLIENT = ReservationParty.CLIENT
CHEF = ReservationParty.CHEF
ADMIN = ReservationParty.ADMIN
SYSTEM = ReservationParty.SYSTEM


class BookingEvent(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    CANCEL = "cancel"
    START = "start"
    COMPLETE = "complete"
    DISPUTE = "dispute"
    RESOLVE_REFUND = "resolve_refund"
    RESOLVE_RELEASE = "resolve_release"


# Events reachable only through the dispute resolver
RESOLUTION_EVENTS = frozenset({BookingEvent.RESOLVE_REFUND, BookingEvent.RESOLVE_RELEASE})


class AppointmentEvent(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    CANCEL = "cancel"


class SideEffect(str, Enum):
    NONE = "none"
    REFUND_CAPTURED = "refund_captured"  # give back whatever was captured
    REFUND_PER_POLICY = "refund_per_policy"  # cancellation refund policy decides
    ENABLE_REVIEW = "enable_review"
    FREEZE = "freeze"  # open a dispute; only resolution may follow
    REFUND_PER_RESOLUTION = "refund_per_resolution"


@dataclass(frozen=True)
class TransitionPlan:
    from_status: str
    event: str
    target: str
    parties: FrozenSet[ReservationParty]
    side_effect: SideEffect = SideEffect.NONE


def _plan(
    source: Enum, event: Enum, target: Enum, parties: Tuple[ReservationParty, ...], effect: SideEffect = SideEffect.NONE
) -> Tuple[Tuple[str, str], TransitionPlan]:
    return (source.value, event.value), TransitionPlan(
        from_status=source.value,
        event=event.value,
        target=target.value,
        parties=frozenset(parties),
        side_effect=effect,
    )


BOOKING_TRANSITIONS: Dict[Tuple[str, str], TransitionPlan] = dict(
    [
        _plan(BookingStatus.PENDING, BookingEvent.ACCEPT, BookingStatus.CONFIRMED, (CHEF,)),
        _plan(
            BookingStatus.PENDING,
            BookingEvent.REJECT,
            BookingStatus.CANCELLED,
            (CHEF, CLIENT),
            SideEffect.REFUND_CAPTURED,
        ),
        _plan(
            BookingStatus.PENDING,
            BookingEvent.CANCEL,
            BookingStatus.CANCELLED,
            (CHEF, CLIENT),
            SideEffect.REFUND_CAPTURED,
        ),
        _plan(BookingStatus.CONFIRMED, BookingEvent.START, BookingStatus.IN_PROGRESS, (SYSTEM, CHEF)),
        _plan(
            BookingStatus.CONFIRMED,
            BookingEvent.CANCEL,
            BookingStatus.CANCELLED,
            (CLIENT, CHEF),
            SideEffect.REFUND_PER_POLICY,
        ),
        _plan(
            BookingStatus.IN_PROGRESS,
            BookingEvent.COMPLETE,
            BookingStatus.COMPLETED,
            (CHEF,),
            SideEffect.ENABLE_REVIEW,
        ),
        _plan(
            BookingStatus.CONFIRMED,
            BookingEvent.DISPUTE,
            BookingStatus.DISPUTED,
            (CLIENT, CHEF),
            SideEffect.FREEZE,
        ),
        _plan(
            BookingStatus.IN_PROGRESS,
            BookingEvent.DISPUTE,
            BookingStatus.DISPUTED,
            (CLIENT, CHEF),
            SideEffect.FREEZE,
        ),
        _plan(
            BookingStatus.DISPUTED,
            BookingEvent.RESOLVE_REFUND,
            BookingStatus.CANCELLED,
            (ADMIN,),
            SideEffect.REFUND_PER_RESOLUTION,
        ),
        _plan(
            BookingStatus.DISPUTED,
            BookingEvent.RESOLVE_RELEASE,
            BookingStatus.COMPLETED,
            (ADMIN,),
            SideEffect.ENABLE_REVIEW,
        ),
    ]
)


APPOINTMENT_TRANSITIONS: Dict[Tuple[str, str], TransitionPlan] = dict(
    [
        _plan(AppointmentStatus.PENDING, AppointmentEvent.ACCEPT, AppointmentStatus.ACCEPTED, (CHEF,)),
        _plan(AppointmentStatus.PENDING, AppointmentEvent.DECLINE, AppointmentStatus.DECLINED, (CHEF,)),
        _plan(
            AppointmentStatus.PENDING,
            AppointmentEvent.CANCEL,
            AppointmentStatus.CANCELLED,
            (CLIENT, CHEF),
        ),
        _plan(
            AppointmentStatus.ACCEPTED,
            AppointmentEvent.CANCEL,
            AppointmentStatus.CANCELLED,
            (CLIENT, CHEF),
        ),
    ]
)


def _resolve(
    table: Dict[Tuple[str, str], TransitionPlan],
    status: str,
    event: str,
    party: ReservationParty,
) -> TransitionPlan:
    plan = table.get((status, event))
    if plan is None:
        raise InvalidTransitionException(status, event)
    if party not in plan.parties:
        raise TransitionNotPermittedException(event, party.value)
    return plan


def plan_booking_transition(status: str, event: str, party: ReservationParty) -> TransitionPlan:
    """
    Look up a booking transition.

    Raises:
        InvalidTransitionException: If ``event`` is not allowed from ``status``
        TransitionNotPermittedException: If ``party`` may not trigger it
    """
    return _resolve(BOOKING_TRANSITIONS, status, event, party)


def plan_appointment_transition(status: str, event: str, party: ReservationParty) -> TransitionPlan:
    return _resolve(APPOINTMENT_TRANSITIONS, status, event, party)


def allowed_booking_events(status: str, party: ReservationParty) -> List[str]:
    """Events ``party`` may trigger from ``status``, resolution events excluded."""
    return sorted(
        plan.event
        for (source, _), plan in BOOKING_TRANSITIONS.items()
        if source == status
        and party in plan.parties
        and BookingEvent(plan.event) not in RESOLUTION_EVENTS
    )


def resolution_events(status: str) -> List[str]:
    """Events the dispute resolver can apply from ``status``."""
    return sorted(
        plan.event
        for (source, _), plan in BOOKING_TRANSITIONS.items()
        if source == status and BookingEvent(plan.event) in RESOLUTION_EVENTS
    )


def allowed_appointment_events(status: str, party: ReservationParty) -> List[str]:
    return sorted(
        plan.event
        for (source, _), plan in APPOINTMENT_TRANSITIONS.items()
        if source == status and party in plan.parties
    )
