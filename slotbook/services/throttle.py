"""Per-phone in-flight booking throttle."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from slotbook.core.errors import TooManyConcurrentRequests
from slotbook.core.logging_config import mask_phone

logger = logging.getLogger(__name__)


class ConcurrencyThrottle:
    """Bounds the number of simultaneous booking attempts per phone."""

    def __init__(self, max_concurrent: int):
        self.max_concurrent = max_concurrent
        self._active: Dict[str, int] = {}

    def try_acquire(self, phone: str) -> bool:
        count = self._active.get(phone, 0)
        if count >= self.max_concurrent:
            return False
        self._active[phone] = count + 1
        return True

    def release(self, phone: str) -> None:
        count = self._active.get(phone, 0)
        if count <= 1:
            self._active.pop(phone, None)
        else:
            self._active[phone] = count - 1

    def active(self, phone: str) -> int:
        return self._active.get(phone, 0)

    def clear(self) -> None:
        """Reset every counter. Counters are expected to be zero between bursts."""
        self._active.clear()

    @asynccontextmanager
    async def hold(self, phone: str) -> AsyncIterator[None]:
        """
        Scoped acquisition: raise TooManyConcurrentRequests if the ceiling is
        reached, otherwise release exactly once however the block exits.
        """
        if not self.try_acquire(phone):
            logger.warning(f"Concurrent booking limit reached for phone {mask_phone(phone)}")
            raise TooManyConcurrentRequests()
        try:
            yield
        finally:
            self.release(phone)
