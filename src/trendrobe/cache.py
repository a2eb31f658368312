"""Time-bounded response cache used by the inference proxy."""

import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Callable

from typing_extensions import override


class ResponseCache(ABC):
    """Abstract interface for a key-value cache with per-entry expiry."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if it is missing or expired."""
        ...

    @abstractmethod
    def put(self, key: str, value: Any, ttl: float) -> None:
        """Store a value that stays fresh for `ttl` seconds."""
        ...

    @abstractmethod
    def clear(self) -> None: ...


class InMemoryTTLCache(ResponseCache):
    """
    Bounded in-process cache.

    Expired entries are dropped when they are read. When the cache is full the
    least recently written entry is evicted.
    """

    def __init__(
        self, max_entries: int = 512, clock: Callable[[], float] = time.monotonic
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()

    @override
    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    @override
    def put(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self._clock() + ttl, value)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    @override
    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        # An empty cache is still a cache
        return True


class NullCache(ResponseCache):
    """A cache that never stores anything."""

    @override
    def get(self, key: str) -> Any | None:
        return None

    @override
    def put(self, key: str, value: Any, ttl: float) -> None:
        pass

    @override
    def clear(self) -> None:
        pass
