"""Per-endpoint circuit breaker for flaky upstream instances.

Public proxy instances go down for hours at a time. After
``failure_threshold`` consecutive failures an endpoint is skipped for
``cooldown_seconds``; then a single trial call is let through while every
other caller keeps skipping the endpoint. A successful trial closes the
breaker, a failed one restarts the cooldown. A trial that never reports
back frees its slot after another cooldown.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class BreakerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class _Entry:
    state: BreakerState = BreakerState.CLOSED
    failures: int = 0
    opened_at: float = 0.0
    trial_started_at: float = 0.0


class EndpointCircuitBreaker:
    """Tracks failure streaks per endpoint key.

    Not thread-safe; mutations happen on one event loop without awaits in
    between.
    """

    def __init__(
        self,
        *,
        failure_threshold: int = 3,
        cooldown_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._threshold = failure_threshold
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def allow(self, key: str) -> bool:
        """Return True if a call to ``key`` may be attempted now."""
        entry = self._entries.get(key)
        if entry is None or entry.state is BreakerState.CLOSED:
            return True

        now = self._clock()
        if entry.state is BreakerState.HALF_OPEN:
            # one trial at a time
            if now - entry.trial_started_at < self._cooldown:
                return False
        elif now - entry.opened_at < self._cooldown:
            return False

        entry.state = BreakerState.HALF_OPEN
        entry.trial_started_at = now
        return True

    def record_success(self, key: str) -> None:
        self._entries.pop(key, None)

    def record_failure(self, key: str) -> None:
        entry = self._entries.setdefault(key, _Entry())
        if entry.state is BreakerState.HALF_OPEN:
            entry.state = BreakerState.OPEN
            entry.opened_at = self._clock()
            return

        entry.failures += 1
        if entry.failures >= self._threshold:
            entry.state = BreakerState.OPEN
            entry.opened_at = self._clock()

    def state(self, key: str) -> BreakerState:
        entry = self._entries.get(key)
        return entry.state if entry else BreakerState.CLOSED

    def snapshot(self) -> dict[str, dict[str, object]]:
        """Diagnostic view of every endpoint with a failure on record."""
        return {
            key: {"state": entry.state.value, "failures": entry.failures}
            for key, entry in sorted(self._entries.items())
        }
