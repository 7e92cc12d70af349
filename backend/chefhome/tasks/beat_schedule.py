# backend/chefhome/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for Chef@Home.

Tasks are scheduled using crontab expressions in the marketplace timezone.
"""

from typing import Any, Dict

from celery.schedules import crontab

from ..core.config import settings


def get_beat_schedule(environment: str = "development") -> Dict[str, Dict[str, Any]]:
    interval = max(1, settings.start_due_bookings_interval_minutes)
    schedule: Dict[str, Dict[str, Any]] = {
        # Confirmed bookings whose date has been reached move to in_progress
        "start-due-bookings": {
            "task": "chefhome.tasks.booking_tasks.start_due_bookings",
            "schedule": crontab(minute=f"*/{interval}"),
            "options": {"expires": interval * 60},
        },
        "send-booking-reminders": {
            "task": "chefhome.tasks.booking_tasks.send_booking_reminders",
            "schedule": crontab(hour=9, minute=0),  # Daily at 9 AM
        },
    }
    if environment.lower() in {"test", "testing"}:
        return {}
    return schedule
