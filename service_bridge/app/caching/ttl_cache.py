"""
In-process TTL cache for normalized bridge records.

Entries expire lazily: an expired entry stays in storage until the next
``get`` of that exact key removes it, so ``size`` counts expired-but-unread
entries too.
"""

import copy
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from shared.logging import get_logger


DEFAULT_TTL_SECONDS = 120.0


class Namespace(str, Enum):
    """Entry points that populate the cache; keys never cross namespaces."""

    PULL = "pull"
    ALIAS = "alias"
    ID = "id"
    BUNDLE = "bundle"


def make_key(namespace: Union[Namespace, str], identifier: str) -> str:
    """Build the cache key for ``identifier`` within ``namespace``."""
    return f"{Namespace(namespace).value}:{identifier}"


@dataclass
class CacheEntry:
    """A stored value and the monotonic time it was written."""

    timestamp: float
    value: Any


class TTLCache:
    """Fixed-TTL mapping shared by all request handlers of one service."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.logger = get_logger("bridge.cache")

    def get(self, key: str) -> Optional[Any]:
        """Return a copy of the live value for ``key``, or ``None``."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.timestamp > self.ttl_seconds:
                del self._entries[key]
                self.logger.debug("Cache entry expired", key=key)
                return None
            return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any) -> None:
        """Store a copy of ``value``, replacing any previous entry."""
        entry = CacheEntry(timestamp=self._clock(), value=copy.deepcopy(value))
        with self._lock:
            self._entries[key] = entry

    def flush(self) -> int:
        """Drop every entry and return how many were physically present."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        self.logger.info("Cache flushed", flushed=count)
        return count

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
