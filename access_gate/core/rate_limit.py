"""
Rate Limiting

This module provides per-client rate limiting backed by the key-value store.

Design Decisions:
- Sliding window: only admitted requests within the trailing window count
- Rejected attempts are not recorded, so a client that keeps hammering is
  admitted again as soon as its oldest admitted request leaves the window
- One record per client ({"requests": [epoch seconds, ...]}) under
  rate_limit:<client>, expiring window + 60s after the last admitted request
- Read-modify-write without compare-and-swap: concurrent requests from the
  same client may both be admitted, overrunning the cap by at most
  (concurrency - 1)
- Store failures (TransportFailure) and unreadable records fail open by
  default (configurable)
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

from access_gate.core.exceptions import TransportFailure
from access_gate.db.interface import KeyValueStore

logger = logging.getLogger(__name__)

RATE_LIMIT_KEY_PREFIX = "rate_limit:"
EXPIRATION_BUFFER_SECONDS = 60


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single admission check."""
    allowed: bool
    remaining: int


class RateLimiter:
    """
    Sliding-window limiter keyed by client identifier.

    Policies are fixed: the window and cap come from configuration and the
    only switch is what to do when the store is unreachable.
    """

    def __init__(
        self,
        store: KeyValueStore,
        max_requests: int = 10,
        window_seconds: int = 60,
        fail_open: bool = True,
        clock: Callable[[], float] = time.time
    ):
        """
        Args:
            store: Backing key-value store
            max_requests: Admitted requests allowed per window
            window_seconds: Window length in seconds
            fail_open: Admit requests when the store fails
            clock: Returns current epoch seconds
        """
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.fail_open = fail_open
        self.clock = clock

    @staticmethod
    def key_for(client_key: str) -> str:
        return f"{RATE_LIMIT_KEY_PREFIX}{client_key}"

    async def admit(self, client_key: str) -> RateLimitDecision:
        """
        Check and record one request for client_key.

        Returns:
            RateLimitDecision with allowed flag and remaining slots
        """
        now = int(self.clock())
        window_start = now - self.window_seconds
        key = self.key_for(client_key)

        try:
            record = await self.store.get(key, as_json=True)
            requests = []
            if record:
                requests = [ts for ts in record.get("requests", []) if ts > window_start]

            if len(requests) >= self.max_requests:
                return RateLimitDecision(allowed=False, remaining=0)

            requests.append(now)
            await self.store.put(
                key,
                {"requests": requests},
                expiration_seconds=self.window_seconds + EXPIRATION_BUFFER_SECONDS
            )

            return RateLimitDecision(
                allowed=True,
                remaining=self.max_requests - len(requests)
            )
        except TransportFailure as e:
            logger.error(f"Rate limit store unavailable for {client_key}: {str(e)}")
            return self._degraded()
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(f"Unreadable rate limit record for {client_key}: {str(e)}", exc_info=True)
            return self._degraded()

    def _degraded(self) -> RateLimitDecision:
        if self.fail_open:
            return RateLimitDecision(allowed=True, remaining=1)
        return RateLimitDecision(allowed=False, remaining=0)
