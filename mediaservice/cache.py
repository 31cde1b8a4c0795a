"""
Thread-safe in-flight cache.
Tracks the fingerprints of tasks currently held by a worker so duplicate
concurrent submissions can be dropped. Bounded by LRU eviction and a
per-entry time-to-live so entries left behind by a crashed worker expire.
Membership is advisory: the durable COMPLETED check is authoritative.
"""

import logging
import time
from collections import OrderedDict
from threading import Lock

logger = logging.getLogger(__name__)


class InFlightCache:
    def __init__(self, size, expiration, clock=time.monotonic):
        if size < 1:
            raise ValueError("cache size must be >= 1")
        self.size = size
        self.expiration = expiration  # seconds, 0 disables expiry
        self._clock = clock
        self._lock = Lock()
        self._entries = OrderedDict()  # key -> expiry deadline (or None)

    def _expired(self, deadline, now):
        return deadline is not None and now >= deadline

    def has(self, key):
        """
        True if the key is present and not expired.
        Any lookup error is reported as absence.
        """
        try:
            with self._lock:
                deadline = self._entries.get(key, False)
                if deadline is False:
                    return False
                if self._expired(deadline, self._clock()):
                    del self._entries[key]
                    return False
                self._entries.move_to_end(key)
                return True
        except Exception as e:
            logger.debug(f"cache lookup failed for {key}: {e}")
            return False

    def add(self, key):
        """
        Insert or refresh a key, evicting the least recently used beyond capacity.
        Returns False when a live entry for the key already existed.
        """
        with self._lock:
            now = self._clock()
            previous = self._entries.get(key, False)
            added = previous is False or self._expired(previous, now)

            self._entries[key] = now + self.expiration if self.expiration > 0 else None
            self._entries.move_to_end(key)
            while len(self._entries) > self.size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"cache evicted {evicted}")
            return added

    def remove(self, key):
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self):
        with self._lock:
            now = self._clock()
            return sum(1 for deadline in self._entries.values() if not self._expired(deadline, now))
