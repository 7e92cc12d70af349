# backend/chefhome/tasks/booking_tasks.py
"""
Periodic booking lifecycle tasks.

Each task opens its own session and runs the service with the system
actor; per-booking failures are logged by the service and never abort
the batch.
"""

from datetime import date, timedelta
import logging
from typing import Dict, Optional

from ..core.timeutils import marketplace_today
from ..database import SessionLocal
from ..services.booking_service import BookingService
from .celery_app import celery_app

logger = logging.getLogger(__name__)


def run_start_due_bookings(today_iso: Optional[str] = None) -> Dict[str, int]:
    today = date.fromisoformat(today_iso) if today_iso else marketplace_today()
    db = SessionLocal()
    try:
        started = BookingService(db).start_due_bookings(today)
    finally:
        db.close()
    logger.info(f"start_due_bookings: {started} booking(s) moved to in_progress for {today}")
    return {"started": started}


def run_send_booking_reminders() -> Dict[str, int]:
    day = marketplace_today() + timedelta(days=1)
    db = SessionLocal()
    try:
        sent = BookingService(db).due_reminders(day)
    finally:
        db.close()
    logger.info(f"send_booking_reminders: {sent} reminder(s) for {day}")
    return {"sent": sent}


@celery_app.task(name="chefhome.tasks.booking_tasks.start_due_bookings")  # type: ignore[misc]
def start_due_bookings(today_iso: Optional[str] = None) -> Dict[str, int]:
    return run_start_due_bookings(today_iso)


@celery_app.task(name="chefhome.tasks.booking_tasks.send_booking_reminders")  # type: ignore[misc]
def send_booking_reminders() -> Dict[str, int]:
    return run_send_booking_reminders()
