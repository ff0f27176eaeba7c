"""
Per-key locks serializing read-modify-write cycles on customers and transports
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from transit_booking.config import settings
from transit_booking.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


def person_key(email: str) -> str:
    return f"person:{email}"


def transport_key(transport_id: int) -> str:
    return f"transport:{transport_id}"


LOCATIONS_KEY = "locations"


class KeyedLock:
    """Re-entrant lock per string key

    A key's lock exists only while some thread holds or waits for it.

    Usage:
        with locks.hold(person_key(email), transport_key(3)):
            read, decide, write back
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = settings.LOCK_TIMEOUT_SECONDS if timeout is None else timeout
        self._guard = threading.Lock()
        # key -> [lock, number of holders and waiters]
        self._locks: Dict[str, List] = {}

    def active_keys(self) -> int:
        """Number of keys currently held or waited on"""
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: str) -> threading.RLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.RLock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        """Acquire every key in sorted order and release them in reverse"""
        acquired = []
        try:
            for key in sorted(set(keys)):
                lock = self._checkout(key)
                wait = self.timeout if self.timeout and self.timeout > 0 else -1
                if not lock.acquire(timeout=wait):
                    self._checkin(key)
                    logger.warning("Lock wait exceeded", extra={"lock_key": key})
                    raise LockTimeoutError(f"The resource '{key}' is busy, please try again later!")
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)
