"""Single-use token tracking with TTL eviction."""

import asyncio
import logging
import threading

from jwt_service.core.clock import Clock, system_clock

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_MIN = 1.0
SWEEP_INTERVAL_MAX = 300.0


def sweep_interval_for(ttl_seconds: int) -> float:
    """Half the TTL, clamped to [1s, 300s]."""
    return min(max(ttl_seconds / 2, SWEEP_INTERVAL_MIN), SWEEP_INTERVAL_MAX)


class ReplayCache:
    """In-memory map of consumed jti -> expiry (epoch seconds).

    Per-process only: replicas without a shared store each keep their own
    view. One lock guards every read and write, including the sweep.
    """

    def __init__(self, ttl_seconds: int, clock: Clock = system_clock) -> None:
        if ttl_seconds < 1:
            raise ValueError("replay TTL must be at least 1 second")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def sweep_interval(self) -> float:
        return sweep_interval_for(self._ttl)

    def expiry_for(self, token_exp: float | None, now: float) -> float:
        """min(token exp, now + TTL); tokens without exp get now + TTL."""
        horizon = now + self._ttl
        if token_exp is None:
            return horizon
        return min(float(token_exp), horizon)

    def put(self, jti: str, expires_at: float) -> None:
        with self._lock:
            self._entries[jti] = expires_at

    def contains_unexpired(self, jti: str, now: float | None = None) -> bool:
        current = self._clock() if now is None else now
        with self._lock:
            return self._is_live(jti, current)

    def check_and_put(self, jti: str, expires_at: float, now: float | None = None) -> bool:
        """Record jti unless a live entry exists. Returns False on replay."""
        current = self._clock() if now is None else now
        with self._lock:
            if self._is_live(jti, current):
                return False
            self._entries[jti] = expires_at
            return True

    def evict_expired(self, now: float | None = None) -> int:
        """Drop entries whose expiry is <= now. Returns how many were removed."""
        current = self._clock() if now is None else now
        with self._lock:
            expired = [jti for jti, exp in self._entries.items() if exp <= current]
            for jti in expired:
                del self._entries[jti]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_live(self, jti: str, now: float) -> bool:
        expires_at = self._entries.get(jti)
        return expires_at is not None and expires_at > now


class ReplaySweeper:
    """Background task that periodically evicts expired replay entries."""

    def __init__(self, cache: ReplayCache, interval: float | None = None) -> None:
        self._cache = cache
        self._interval = cache.sweep_interval if interval is None else interval
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    def sweep_once(self) -> int:
        removed = self._cache.evict_expired()
        if removed:
            logger.debug("Evicted %d expired replay entries", removed)
        return removed

    async def _sweep_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            self.sweep_once()
