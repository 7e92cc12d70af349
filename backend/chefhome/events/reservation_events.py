"""Reservation domain events handed to the notification collaborator."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ReservationCreated:
    """Fired after a reservation of either kind is persisted in ``pending``."""

    reservation_kind: str
    reservation_id: str
    chef_id: str
    client_id: str
    recipients: List[str]
    event: str = "created"
    occurred_at: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReservationTransitioned:
    """Fired after every committed status change."""

    reservation_kind: str
    reservation_id: str
    event: str
    from_status: str
    to_status: str
    actor_id: Optional[str]
    recipients: List[str]
    refund_amount: Optional[str] = None
    occurred_at: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
