"""Celery application and periodic lifecycle tasks."""
