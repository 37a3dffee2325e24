from __future__ import annotations

import logging
from typing import Callable, Dict, Generic, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class KeyedCache(Generic[V]):
    """
    Get-or-fetch memo keyed by string, scoped to one page session.

    Only hits are remembered: a key whose fetch returned None is asked again
    next time. Entries are never evicted; drop the cache with the request.
    """

    def __init__(self, fetch: Callable[[str], Optional[V]]):
        self._fetch = fetch
        self._values: Dict[str, V] = {}

    def __contains__(self, key: str) -> bool:
        return self._normalize(key) in self._values

    def __len__(self) -> int:
        return len(self._values)

    @staticmethod
    def _normalize(key: Optional[str]) -> str:
        return (key or "").strip()

    def peek(self, key: Optional[str]) -> Optional[V]:
        return self._values.get(self._normalize(key))

    def get(self, key: Optional[str]) -> Optional[V]:
        key = self._normalize(key)
        if not key:
            return None
        if key in self._values:
            return self._values[key]
        value = self._fetch(key)
        if value is not None:
            self._values[key] = value
        return value

    def prefetch(self, keys: Iterable[Optional[str]]) -> None:
        missing = {self._normalize(k) for k in keys} - set(self._values) - {""}
        if missing:
            logger.debug("Prefetching %d cache entries", len(missing))
        for key in sorted(missing):
            self.get(key)


class DriverImageCache(KeyedCache[str]):
    """Driver licence -> stored image path, looked up through the fleet API."""

    def __init__(self, client):
        super().__init__(client.get_driver_image)

    def for_record(self, record) -> Optional[str]:
        """Image from the trip record itself, else the licence lookup."""
        return record.driver_image or self.get(record.driver_license)
