"""project_events package.

Resilient publishing of project domain events to the orchestration service.
"""

from project_events.errors import (
    CircuitOpenError,
    EventPublishError,
    RetryExhaustedError,
    TransportError,
)
from project_events.publisher import EventPublisher

__all__ = [
    "CircuitOpenError",
    "EventPublishError",
    "EventPublisher",
    "RetryExhaustedError",
    "TransportError",
]
