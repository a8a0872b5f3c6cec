"""Request admission: per-client cooldown + global token bucket."""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Any, Callable, Hashable

logger = logging.getLogger(__name__)


class AdmissionController:
    """Admits a request only if the global bucket has a token and the client is off cooldown.

    The bucket refills lazily: every whole ``refill_interval`` elapsed since the
    last refill credits a full batch of ``max_tokens`` (capped at capacity) and
    the anchor moves to ``now``. Partial intervals are not credited.
    """

    def __init__(
        self,
        cooldown: float = 5.0,
        max_tokens: int = 3,
        refill_interval: float = 60.0,
        stale_ttl: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        start: float | None = None,
    ):
        self.cooldown = float(cooldown)
        self.max_tokens = int(max_tokens)
        self.refill_interval = float(refill_interval)
        self.stale_ttl = float(stale_ttl)
        self.clock = clock

        self._lock = threading.Lock()
        self._last_seen: dict[Hashable, float] = {}
        self._tokens = self.max_tokens
        self._last_refill = clock() if start is None else float(start)

    @property
    def tokens(self) -> int:
        return self._tokens

    @property
    def last_refill(self) -> float:
        return self._last_refill

    @property
    def client_count(self) -> int:
        return len(self._last_seen)

    def last_admitted(self, client_id: Hashable) -> float | None:
        return self._last_seen.get(client_id)

    def allow(self, client_id: Hashable, now: float | None = None) -> bool:
        if client_id is None:
            logger.warning("admission rejected: missing client id")
            return False
        if now is None:
            now = self.clock()

        with self._lock:
            self._refill(now)

            if self._tokens < 1:
                logger.info("global rate limit exceeded")
                return False

            last = self._last_seen.get(client_id)
            if last is not None and (now - last < self.cooldown or now <= last):
                logger.debug("client %s rate limit exceeded", client_id)
                return False

            self._last_seen[client_id] = now
            self._tokens -= 1
            return True

    def _refill(self, now: float) -> None:
        # Caller holds the lock.
        elapsed = now - self._last_refill
        if elapsed < self.refill_interval:
            return
        intervals = math.floor(elapsed / self.refill_interval)
        self._tokens = min(self.max_tokens, self._tokens + intervals * self.max_tokens)
        self._last_refill = now

    def maintenance(self, now: float | None = None) -> int:
        """Drop cooldown entries older than ``stale_ttl``. Returns how many were removed."""
        if now is None:
            now = self.clock()
        with self._lock:
            stale = [cid for cid, ts in self._last_seen.items() if now - ts > self.stale_ttl]
            for cid in stale:
                # Overlapping passes may already have removed it.
                self._last_seen.pop(cid, None)
        if stale:
            logger.debug("purged %d stale client entries", len(stale))
        return len(stale)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "tokens": self._tokens,
                "maxTokens": self.max_tokens,
                "clients": len(self._last_seen),
                "cooldownSec": self.cooldown,
                "refillIntervalSec": self.refill_interval,
            }
