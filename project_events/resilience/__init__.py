"""Circuit breaking, backoff and retry orchestration for event publishing."""

from .backoff import backoff_delay, resolve_policy
from .circuit_breaker import CircuitBreaker, CircuitState
from .retry import RetryOrchestrator

__all__ = [
    "backoff_delay",
    "resolve_policy",
    "CircuitBreaker",
    "CircuitState",
    "RetryOrchestrator",
]
