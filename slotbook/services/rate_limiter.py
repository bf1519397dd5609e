"""Per-client sliding-window rate limiter."""
import logging
import time
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Sliding-window request counter keyed by client identity.

    Each identity keeps the timestamps of its accepted requests inside the
    trailing window. Stale timestamps are pruned on every check.

    The check and the record happen without an await in between, so on a
    single event loop they cannot interleave. Under threaded servers a lost
    update can only let an extra request through; it never corrupts state.
    """

    def __init__(
        self,
        window_ms: int,
        max_requests: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window = window_ms / 1000.0
        self.max_requests = max_requests
        self._clock = clock
        self._requests: Dict[str, List[float]] = {}

    def allow(self, identity: str) -> bool:
        """Record and allow the request, or deny it without recording."""
        now = self._clock()
        recent = [t for t in self._requests.get(identity, []) if now - t < self.window]

        if len(recent) >= self.max_requests:
            self._requests[identity] = recent
            return False

        recent.append(now)
        self._requests[identity] = recent
        return True

    def sweep(self) -> int:
        """Drop identities with no activity inside the window. Returns count removed."""
        now = self._clock()
        removed = 0
        for identity in list(self._requests):
            valid = [t for t in self._requests[identity] if now - t < self.window]
            if valid:
                self._requests[identity] = valid
            else:
                del self._requests[identity]
                removed += 1

        if removed:
            logger.debug(f"Swept {removed} idle rate limit entries")
        return removed

    def tracked(self) -> int:
        """Number of identities currently tracked."""
        return len(self._requests)
