from .reservation_events import ReservationCreated, ReservationTransitioned

__all__ = ["ReservationCreated", "ReservationTransitioned"]
