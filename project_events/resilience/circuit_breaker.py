"""
Circuit breaker guarding calls to the event receiver.

States:
    CLOSED     calls pass through; consecutive failures are counted
    OPEN       calls are rejected with CircuitOpenError until the cooldown elapses
    HALF_OPEN  exactly one probe call is let through; its outcome closes or
               re-opens the circuit

Only state transitions happen under the lock. The guarded operation itself
runs unlocked so concurrent publishes never queue behind each other.
"""

import asyncio
import logging
import threading
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from project_events.errors import CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    """Circuit breaker states"""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Blocking requests
    HALF_OPEN = "half-open"  # Probing recovery


class CircuitBreaker:
    """
    Three-state circuit breaker.

    Args:
        threshold: Consecutive failures that open the circuit
        cooldown: Seconds after the last failure before a probe is allowed
        clock: Monotonic time source in seconds (injectable for tests)
        name: Used in log lines and error messages
    """

    def __init__(
        self,
        threshold: int = 5,
        cooldown: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        name: str = "event-transport",
    ):
        if threshold < 1:
            raise ValueError(f"threshold must be >= 1, got {threshold}")
        self.threshold = threshold
        self.cooldown = cooldown
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None
        self._probe_in_flight = False

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def last_failure_time(self) -> Optional[float]:
        return self._last_failure_time

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation`` if the circuit allows it.

        Raises:
            CircuitOpenError: If the circuit is open, or a half-open probe is
                already in flight. The operation is not invoked and the
                failure count is not touched.
            Exception: Whatever the operation raised
        """
        self._acquire_permission()

        try:
            result = await operation()
        except asyncio.CancelledError:
            self._release_probe()
            raise
        except Exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def snapshot(self) -> Dict[str, Any]:
        """Point-in-time view of the breaker, safe to expose in health output."""
        with self._lock:
            since_failure = (
                None
                if self._last_failure_time is None
                else round(self._clock() - self._last_failure_time, 3)
            )
            return {
                "state": self._state.value,
                "failure_count": self._failure_count,
                "threshold": self.threshold,
                "cooldown": self.cooldown,
                "seconds_since_last_failure": since_failure,
            }

    def _acquire_permission(self) -> None:
        with self._lock:
            if self._state is CircuitState.CLOSED:
                return

            if self._state is CircuitState.OPEN:
                elapsed = self._clock() - (self._last_failure_time or 0.0)
                if elapsed > self.cooldown:
                    self._state = CircuitState.HALF_OPEN
                    self._probe_in_flight = True
                    logger.info(f"Circuit breaker '{self.name}' transitioning to HALF_OPEN")
                    return
                raise CircuitOpenError(
                    f"Circuit breaker '{self.name}' is OPEN - requests blocked "
                    f"(retry in {max(self.cooldown - elapsed, 0.0):.1f}s)"
                )

            # HALF_OPEN: only the single probe may pass
            if self._probe_in_flight:
                raise CircuitOpenError(
                    f"Circuit breaker '{self.name}' is HALF_OPEN - probe already in flight"
                )
            self._probe_in_flight = True

    def _on_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            if self._state is CircuitState.HALF_OPEN:
                self._state = CircuitState.CLOSED
                self._probe_in_flight = False
                logger.info(f"Circuit breaker '{self.name}' restored to CLOSED state")

    def _on_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = self._clock()

            if self._state is CircuitState.HALF_OPEN:
                self._state = CircuitState.OPEN
                self._probe_in_flight = False
                logger.warning(f"Circuit breaker '{self.name}' probe failed, re-OPENED")
            elif (
                self._state is CircuitState.CLOSED
                and self._failure_count >= self.threshold
            ):
                self._state = CircuitState.OPEN
                logger.warning(
                    f"Circuit breaker '{self.name}' OPENED after {self._failure_count} failures"
                )

    def _release_probe(self) -> None:
        # A cancelled probe proves nothing; go back to OPEN without
        # refreshing the failure time so the next call may probe again.
        with self._lock:
            if self._state is CircuitState.HALF_OPEN:
                self._state = CircuitState.OPEN
                self._probe_in_flight = False
