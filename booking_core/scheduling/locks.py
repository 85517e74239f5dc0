"""Per (business, staff, date) locks serialising read-validate-write booking sections."""

import logging
import threading
from contextlib import ExitStack, contextmanager
from typing import Hashable, Iterator

logger = logging.getLogger(__name__)


class BookingLocks:
    """
    Lazily created mutex per schedule bucket.

    ``hold`` acquires several buckets in sorted order so a reschedule that
    locks two days can never deadlock against another reschedule.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        with ExitStack() as stack:
            for key in sorted(set(keys), key=repr):
                stack.enter_context(self._lock_for(key))
            logger.debug("Holding booking locks: %s", keys)
            yield
