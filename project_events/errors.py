"""
Error taxonomy for event publishing.

- TransportError: a single publish attempt failed (network error, non-2xx
  response, timeout). Always retryable.
- CircuitOpenError: the circuit breaker rejected the call without touching
  the transport.
- RetryExhaustedError: every attempt failed; carries the last error and the
  attempt count.
"""

from typing import Optional


class EventPublishError(Exception):
    """Base class for all event publishing errors."""


class TransportError(EventPublishError):
    """A single transport attempt failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CircuitOpenError(EventPublishError):
    """Raised when the circuit breaker is open and blocks the call."""


class RetryExhaustedError(EventPublishError):
    """Raised after the final publish attempt fails."""

    def __init__(self, event_type: str, attempts: int, last_error: Optional[BaseException]):
        self.event_type = event_type
        self.attempts = attempts
        self.last_error = last_error
        last_message = str(last_error) if last_error else "Unknown error"
        super().__init__(
            f"Failed to publish event {event_type} after {attempts} attempts. "
            f"Last error: {last_message}"
        )
