"""
Per-room mutex serializing the booking overlap check with its insert

Two concurrent creates for the same room must never both observe "free".
The lock covers one process; `SELECT ... FOR UPDATE` on the room row covers
databases shared between processes.
"""
from contextlib import contextmanager
from typing import Dict, Iterator, Optional
import logging
import threading

from resortpms.config import settings
from resortpms.exceptions import RoomUnavailableError

logger = logging.getLogger(__name__)


class RoomLockRegistry:
    """One lock per room id, created on first use"""

    def __init__(self, timeout: Optional[float] = None):
        self._locks: Dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._timeout = timeout

    def _lock_for(self, room_id: int) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(room_id)
            if lock is None:
                lock = self._locks[room_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, room_id: int) -> Iterator[None]:
        timeout = self._timeout if self._timeout is not None else settings.BOOKING_LOCK_TIMEOUT_SECONDS
        lock = self._lock_for(room_id)
        if not lock.acquire(timeout=timeout):
            logger.warning(f"Timed out after {timeout}s waiting for booking lock on room {room_id}")
            raise RoomUnavailableError(
                f"Room {room_id} is busy with another booking request, retry shortly",
                room_id=room_id
            )
        try:
            yield
        finally:
            lock.release()


# Shared by every BookingService in the process
room_locks = RoomLockRegistry()
