"""
Mutual exclusion scopes for reservation writes.

Two layers are combined:

* a process-local ``threading.Lock`` per key, which serializes requests
  handled by the same worker process;
* a Redis ``SET NX EX`` key when ``settings.redis_url`` is configured,
  which serializes requests across worker processes.

The Redis layer fails open when the server is unreachable; the
optimistic ``schedule_version`` check on the chef row still rejects a
lost race in that case.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Dict, Iterator, Optional

from redis import Redis

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()

_LOCAL_LOCKS: Dict[str, threading.Lock] = {}
_LOCAL_LOCKS_GUARD = threading.Lock()


def chef_schedule_key(chef_id: str) -> str:
    return f"chef:{chef_id}:schedule"


def booking_key(booking_id: str) -> str:
    return f"booking:{booking_id}:mutex"


def _namespaced_key(key: str) -> str:
    return f"{settings.lock_namespace}:lock:{key}"


def _local_lock(key: str) -> threading.Lock:
    with _LOCAL_LOCKS_GUARD:
        lock = _LOCAL_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _LOCAL_LOCKS[key] = lock
        return lock


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if not settings.redis_url:
        return None
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except Exception as exc:
            logger.warning("reservation_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def acquire_reservation_lock(
    key: str, ttl_s: Optional[int] = None, wait_s: Optional[float] = None
) -> bool:
    ttl = ttl_s or settings.reservation_lock_ttl_seconds
    wait = settings.reservation_lock_wait_seconds if wait_s is None else wait_s

    local = _local_lock(key)
    if not local.acquire(timeout=wait):
        prometheus_metrics.record_reservation_lock("acquire", "blocked")
        return False

    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_reservation_lock("acquire", "acquired")
        return True

    try:
        acquired = bool(client.set(_namespaced_key(key), str(time.time()), nx=True, ex=ttl))
    except Exception as exc:
        prometheus_metrics.record_reservation_lock("acquire", "backend_error")
        logger.warning(
            "reservation_lock_redis_acquire_failed",
            extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
        )
        return True

    if not acquired:
        local.release()
        prometheus_metrics.record_reservation_lock("acquire", "blocked")
        return False

    prometheus_metrics.record_reservation_lock("acquire", "acquired")
    return True


def release_reservation_lock(key: str) -> None:
    try:
        client = _get_sync_redis()
        if client is not None:
            try:
                client.delete(_namespaced_key(key))
            except Exception as exc:
                prometheus_metrics.record_reservation_lock("release", "backend_error")
                logger.warning(
                    "reservation_lock_redis_release_failed",
                    extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
                )
    finally:
        local = _local_lock(key)
        if local.locked():
            local.release()
        prometheus_metrics.record_reservation_lock("release", "released")


@contextmanager
def reservation_lock(
    key: str, ttl_s: Optional[int] = None, wait_s: Optional[float] = None
) -> Iterator[bool]:
    """Yield whether the lock was acquired; release it on exit when held."""
    acquired = acquire_reservation_lock(key, ttl_s=ttl_s, wait_s=wait_s)
    try:
        yield acquired
    finally:
        if acquired:
            release_reservation_lock(key)
