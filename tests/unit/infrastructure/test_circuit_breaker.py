"""Tests for EndpointCircuitBreaker."""

from __future__ import annotations

from balkanod.infrastructure.providers.circuit_breaker import (
    BreakerState,
    EndpointCircuitBreaker,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestInitialState:
    def test_new_endpoint_is_allowed(self) -> None:
        cb = EndpointCircuitBreaker()
        assert cb.allow("https://inv.example") is True

    def test_new_endpoint_state_is_closed(self) -> None:
        cb = EndpointCircuitBreaker()
        assert cb.state("https://inv.example") is BreakerState.CLOSED


class TestClosedState:
    def test_failures_below_threshold_stay_closed(self) -> None:
        cb = EndpointCircuitBreaker(failure_threshold=3)
        cb.record_failure("a")
        cb.record_failure("a")
        assert cb.allow("a") is True
        assert cb.state("a") is BreakerState.CLOSED

    def test_success_resets_failure_count(self) -> None:
        cb = EndpointCircuitBreaker(failure_threshold=3)
        cb.record_failure("a")
        cb.record_failure("a")
        cb.record_success("a")
        cb.record_failure("a")
        assert cb.state("a") is BreakerState.CLOSED


class TestOpenState:
    def test_opens_at_threshold(self) -> None:
        cb = EndpointCircuitBreaker(failure_threshold=3)
        for _ in range(3):
            cb.record_failure("a")
        assert cb.state("a") is BreakerState.OPEN
        assert cb.allow("a") is False

    def test_other_endpoints_unaffected(self) -> None:
        cb = EndpointCircuitBreaker(failure_threshold=1)
        cb.record_failure("a")
        assert cb.allow("b") is True

    def test_half_open_after_cooldown(self) -> None:
        clock = FakeClock()
        cb = EndpointCircuitBreaker(failure_threshold=2, cooldown_seconds=10, clock=clock)
        cb.record_failure("a")
        cb.record_failure("a")

        clock.now += 9
        assert cb.allow("a") is False
        clock.now += 1
        assert cb.allow("a") is True
        assert cb.state("a") is BreakerState.HALF_OPEN


class TestHalfOpenState:
    def _half_open(self) -> tuple[EndpointCircuitBreaker, FakeClock]:
        clock = FakeClock()
        cb = EndpointCircuitBreaker(failure_threshold=1, cooldown_seconds=5, clock=clock)
        cb.record_failure("a")
        clock.now += 5
        cb.allow("a")
        return cb, clock

    def test_trial_success_closes(self) -> None:
        cb, _ = self._half_open()
        cb.record_success("a")
        assert cb.state("a") is BreakerState.CLOSED

    def test_trial_failure_reopens(self) -> None:
        cb, _ = self._half_open()
        cb.record_failure("a")
        assert cb.state("a") is BreakerState.OPEN
        assert cb.allow("a") is False

    def test_only_one_trial_at_a_time(self) -> None:
        cb, _ = self._half_open()
        assert cb.allow("a") is False
        assert cb.allow("a") is False
        assert cb.state("a") is BreakerState.HALF_OPEN

    def test_allows_again_after_trial_success(self) -> None:
        cb, _ = self._half_open()
        cb.record_success("a")
        assert cb.allow("a") is True
        assert cb.allow("a") is True

    def test_trial_failure_restarts_cooldown(self) -> None:
        cb, clock = self._half_open()
        clock.now += 3
        cb.record_failure("a")
        clock.now += 4
        assert cb.allow("a") is False
        clock.now += 1
        assert cb.allow("a") is True
        assert cb.allow("a") is False

    def test_lost_trial_frees_slot_after_cooldown(self) -> None:
        cb, clock = self._half_open()
        clock.now += 4
        assert cb.allow("a") is False
        clock.now += 1
        assert cb.allow("a") is True
        assert cb.allow("a") is False


class TestSnapshot:
    def test_lists_endpoints_with_failures(self) -> None:
        cb = EndpointCircuitBreaker(failure_threshold=2)
        cb.record_failure("b")
        cb.record_failure("a")
        cb.record_failure("a")
        assert cb.snapshot() == {
            "a": {"state": "open", "failures": 2},
            "b": {"state": "closed", "failures": 1},
        }
