# app/services/scheduling/locks.py
"""
Per-business commit locks.

The conflict check and the appointment write must happen while one of these
is held, otherwise two commits can both pass the check against a stale read.
Both backends also take a row lock on the business (SELECT ... FOR UPDATE),
which serializes writers across processes on PostgreSQL and is a no-op on
SQLite.

Acquiring blocks the calling thread for up to BOOKING_LOCK_TIMEOUT_SECONDS,
so routes that commit are plain `def` and run in FastAPI's threadpool.
LocalBookingLock keeps one lock per business id for the life of the process;
the registry grows with the number of businesses and is never pruned.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Optional
from uuid import UUID

from redis.exceptions import LockError
from sqlalchemy.orm import Session

from app.config.redis import RedisKeys, get_redis
from app.config.settings import get_settings
from app.models.business import Business
from app.services.scheduling.errors import BookingFailed

logger = logging.getLogger(__name__)


def lock_business_row(db: Session, business_id: UUID) -> None:
    db.query(Business.id).filter(Business.id == business_id).with_for_update().one_or_none()


class BookingLock:
    """Serializes check-then-write for one business"""

    def hold(self, db: Session, business_id: UUID):
        """Context manager held across the conflict check and the commit"""
        raise NotImplementedError


class LocalBookingLock(BookingLock):
    """One threading.Lock per business, shared by every request in the process"""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout if timeout is not None else get_settings().BOOKING_LOCK_TIMEOUT_SECONDS
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, business_id: UUID) -> threading.Lock:
        key = str(business_id)
        with self._registry_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    @contextmanager
    def hold(self, db: Session, business_id: UUID):
        lock = self._lock_for(business_id)
        if not lock.acquire(timeout=self.timeout):
            logger.error(f"Timed out waiting for booking lock of business {business_id}")
            raise BookingFailed("Booking system is busy, please try again")
        try:
            lock_business_row(db, business_id)
            yield
        finally:
            lock.release()


class RedisBookingLock(BookingLock):
    """Distributed lock for deployments running several API processes"""

    def __init__(self, client=None, timeout: Optional[float] = None):
        self.client = client if client is not None else get_redis()
        self.timeout = timeout if timeout is not None else get_settings().BOOKING_LOCK_TIMEOUT_SECONDS

    @contextmanager
    def hold(self, db: Session, business_id: UUID):
        lock = self.client.lock(
            RedisKeys.BOOKING_LOCK.format(business_id=business_id),
            timeout=self.timeout,
            blocking_timeout=self.timeout,
        )
        if not lock.acquire():
            logger.error(f"Timed out waiting for redis booking lock of business {business_id}")
            raise BookingFailed("Booking system is busy, please try again")
        try:
            lock_business_row(db, business_id)
            yield
        finally:
            try:
                lock.release()
            except LockError as e:
                # Lock expired while held; the row lock still covered the write
                logger.warning(f"Booking lock for business {business_id} expired before release: {e}")


_booking_lock: Optional[BookingLock] = None


def get_booking_lock() -> BookingLock:
    """Process-wide lock chosen by BOOKING_LOCK_BACKEND"""
    global _booking_lock
    if _booking_lock is None:
        backend = get_settings().BOOKING_LOCK_BACKEND.lower()
        if backend == "redis":
            _booking_lock = RedisBookingLock()
        elif backend == "local":
            _booking_lock = LocalBookingLock()
        else:
            raise ValueError(f"Unknown BOOKING_LOCK_BACKEND: {backend}")
        logger.info(f"Using {type(_booking_lock).__name__} for appointment commits")
    return _booking_lock
