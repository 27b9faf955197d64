"""
Per-date booking locks

Every write that can create or move an active interval on a date runs
inside hold(date). Different dates never contend. Acquisition is bounded:
a caller that cannot get the lock in time gets a TransientError instead of
waiting forever.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Optional

import redis
from redis.exceptions import LockError, RedisError

from ... import config
from ...exceptions import ConfigurationError, TransientError

logger = logging.getLogger(__name__)


class LocalDateLocks:
    """
    In-process lock per date. Serializes commits inside one worker only;
    deployments with several workers need RedisDateLocks.

    The registry keeps a date only while someone holds or waits for its
    lock, so it does not grow with every date ever booked.
    """

    def __init__(self, timeout_seconds: float = config.BOOKING_LOCK_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds
        self._locks: dict[date, threading.Lock] = {}
        self._users: dict[date, int] = {}
        self._registry_lock = threading.Lock()

    def _checkout(self, day: date) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(day)
            if lock is None:
                lock = self._locks[day] = threading.Lock()
            self._users[day] = self._users.get(day, 0) + 1
            return lock

    def _checkin(self, day: date) -> None:
        with self._registry_lock:
            self._users[day] -= 1
            if not self._users[day]:
                del self._users[day]
                del self._locks[day]

    @contextmanager
    def hold(self, day: date) -> Iterator[None]:
        lock = self._checkout(day)
        try:
            if not lock.acquire(timeout=self.timeout_seconds):
                logger.warning(f"⏳ Booking lock for {day} not acquired within {self.timeout_seconds}s")
                raise TransientError(
                    f"Bookings for {day.isoformat()} are busy, please retry",
                    retry_after=config.BOOKING_RETRY_AFTER_SECONDS,
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(day)


class RedisDateLocks:
    """Distributed lock per date, shared by every worker using the same Redis"""

    def __init__(
        self,
        client: redis.Redis,
        timeout_seconds: float = config.BOOKING_LOCK_TIMEOUT_SECONDS,
        ttl_seconds: int = config.BOOKING_LOCK_TTL_SECONDS,
        key_prefix: str = "booking-lock",
    ):
        self.client = client
        self.timeout_seconds = timeout_seconds
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    @contextmanager
    def hold(self, day: date) -> Iterator[None]:
        name = f"{self.key_prefix}:{day.isoformat()}"
        # ttl releases the lock if a worker dies while holding it
        lock = self.client.lock(
            name, timeout=self.ttl_seconds, blocking_timeout=self.timeout_seconds
        )
        try:
            acquired = lock.acquire()
        except RedisError as e:
            logger.error(f"❌ Redis lock error for {name}: {e}")
            raise TransientError(
                "Booking lock service unavailable, please retry",
                retry_after=config.BOOKING_RETRY_AFTER_SECONDS,
            ) from e
        if not acquired:
            logger.warning(f"⏳ Redis lock {name} not acquired within {self.timeout_seconds}s")
            raise TransientError(
                f"Bookings for {day.isoformat()} are busy, please retry",
                retry_after=config.BOOKING_RETRY_AFTER_SECONDS,
            )
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                # Expired while held; the ttl already freed it
                logger.warning(f"⚠️ Redis lock {name} expired before release")


def get_redis_client() -> redis.Redis:
    """Create a Redis client from REDIS_URL"""
    if not config.REDIS_URL:
        raise ConfigurationError("BOOKING_LOCK_BACKEND=redis requires REDIS_URL")

    # Mask password in URL for logging
    if "@" in config.REDIS_URL:
        url_parts = config.REDIS_URL.split("@")
        protocol = url_parts[0].split(":")[0]
        masked_url = f"{protocol}:****@{url_parts[1]}"
    else:
        masked_url = config.REDIS_URL
    logger.info(f"📡 Using Redis URL connection for booking locks: {masked_url}")

    return redis.from_url(
        config.REDIS_URL,
        socket_connect_timeout=5,
        socket_timeout=10,
        retry_on_timeout=True,
        health_check_interval=30,
    )


_date_locks: Optional[object] = None


def get_date_locks():
    """Get or create the process-wide per-date lock registry"""
    global _date_locks

    if _date_locks is None:
        if config.BOOKING_LOCK_BACKEND == "redis":
            _date_locks = RedisDateLocks(get_redis_client())
        elif config.BOOKING_LOCK_BACKEND == "local":
            _date_locks = LocalDateLocks()
        else:
            raise ConfigurationError(
                f"Unknown BOOKING_LOCK_BACKEND '{config.BOOKING_LOCK_BACKEND}' (expected local or redis)"
            )
        logger.info(f"🔒 Booking locks: {config.BOOKING_LOCK_BACKEND}")

    return _date_locks
