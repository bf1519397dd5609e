"""Short-lived cache for the availability listing."""
import time
from typing import Any, Callable, Dict, Optional


class SlotCache:
    """Holds the last fetched listing while it is younger than the TTL."""

    def __init__(self, ttl_ms: int, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl_ms / 1000.0
        self._clock = clock
        self._listing: Optional[Dict[str, Any]] = None
        self._stored_at = 0.0

    def get(self) -> Optional[Dict[str, Any]]:
        if self._listing is None:
            return None
        if self._clock() - self._stored_at >= self.ttl:
            return None
        return self._listing

    def set(self, listing: Dict[str, Any]) -> None:
        self._listing = listing
        self._stored_at = self._clock()

    def invalidate(self) -> None:
        self._listing = None
        self._stored_at = 0.0
