"""Application-wide constants for the Chef@Home platform."""

from __future__ import annotations

BRAND_NAME = "Chef@Home"

# Service booking duration constraints (hours)
MIN_BOOKING_DURATION_HOURS = 1
MAX_BOOKING_DURATION_HOURS = 12

# Text constraints
MAX_APPOINTMENT_MESSAGE_LENGTH = 2000
MAX_REVIEW_COMMENT_LENGTH = 500
MAX_RESOLUTION_LENGTH = 2000
MAX_REASON_LENGTH = 500

# Review bounds
MIN_RATING = 1
MAX_RATING = 5

# Query limits
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

DAYS_OF_WEEK = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)
