# =======================================================================================
# checkin_station/services/cache.py - In-memory Response Cache
# =======================================================================================
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

T = TypeVar("T")

DEFAULT_DURATION = 5 * 60  # seconds


class TTLCache:
    """Small time-based cache for read-mostly backend responses (event catalog)."""

    def __init__(self, default_duration: float = DEFAULT_DURATION, max_entries: int = 128,
                 clock: Callable[[], float] = time.time):
        self.default_duration = default_duration
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (timestamp, data)
        self._entries: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()

    def get(self, key: str, duration: Optional[float] = None) -> Optional[Any]:
        """Return cached data if still valid, else None."""
        max_age = duration or self.default_duration
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None

            ts, data = item
            if self._clock() - ts > max_age:
                self._entries.pop(key, None)
                return None

            # keep most-recently-used ordering
            self._entries.move_to_end(key)
            return data

    def set(self, key: str, data: Any) -> None:
        """Store data with the current timestamp and trim cache size."""
        with self._lock:
            self._entries[key] = (self._clock(), data)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def clear_expired(self, duration: Optional[float] = None) -> int:
        """Drop expired entries; returns how many were removed."""
        max_age = duration or self.default_duration
        now = self._clock()
        with self._lock:
            expired = [k for k, (ts, _) in self._entries.items() if now - ts > max_age]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {"size": len(self._entries), "keys": list(self._entries.keys())}

    def with_cache(self, key: str, fetcher: Callable[[], T], duration: Optional[float] = None) -> T:
        """Return the cached value for key, or call fetcher and cache its result."""
        cached = self.get(key, duration)
        if cached is not None:
            return cached

        data = fetcher()
        self.set(key, data)
        return data
