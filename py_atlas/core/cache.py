"""
Single-slot generation cache.

Holds the most recent (key, value) pair only. A lookup with a different
key is a miss; storing overwrites the slot. Safe to share across threads.
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import structlog
from pydantic import BaseModel

logger = structlog.get_logger()


def settings_snapshot(settings: Optional[BaseModel]) -> Optional[Dict[str, Any]]:
    """Plain-data copy of a settings model, compared by deep equality."""
    if settings is None:
        return None
    return settings.model_dump(mode="json")


@dataclass(frozen=True)
class CacheKey:
    """Identity of one generation."""

    point_digest: str
    width: float
    height: float
    settings: Optional[Dict[str, Any]] = None


class GenerationCache:
    """Most-recent-entry memo for density grids or terrain rasters."""

    def __init__(self, name: str = "generation"):
        self.name = name
        self._lock = threading.Lock()
        self._key: Optional[CacheKey] = None
        self._value: Any = None
        self.hits = 0
        self.misses = 0

    def get(self, key: CacheKey) -> Optional[Any]:
        with self._lock:
            if self._key is not None and self._key == key:
                self.hits += 1
                return self._value
            self.misses += 1
            return None

    def put(self, key: CacheKey, value: Any) -> None:
        with self._lock:
            self._key = key
            self._value = value

    def get_or_compute(self, key: CacheKey, compute: Callable[[], Any]) -> Any:
        """
        Cached value for key, computing and storing it on a miss.

        The computation runs outside the lock; concurrent misses may both
        compute, and the last one to finish owns the slot.
        """
        value = self.get(key)
        if value is not None:
            logger.debug("Cache hit", cache=self.name)
            return value

        logger.debug("Cache miss", cache=self.name, width=key.width, height=key.height)
        value = compute()
        self.put(key, value)
        return value

    def invalidate(self) -> None:
        with self._lock:
            self._key = None
            self._value = None

    @property
    def key(self) -> Optional[CacheKey]:
        return self._key
