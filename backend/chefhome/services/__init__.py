"""Business logic for reservations, payments and disputes."""
