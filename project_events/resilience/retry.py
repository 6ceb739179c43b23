"""
Retry orchestration for a single event publish.

One call drives up to ``max_retries`` sequential attempts of the transport,
gated by the circuit breaker for high-priority events, with a backoff sleep
between attempts. Metrics recorded per event kind:

    <kind>_attempt         every attempt, including breaker rejections
    <kind>_retry           every failed attempt
    <kind>_retry_success   success on attempt > 1
    <kind>_failure         retries exhausted
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional

from project_events.errors import RetryExhaustedError, TransportError
from project_events.events.base import EventEnvelope
from project_events.events.types import EventPriority, get_event_metadata
from project_events.metrics import MetricsCollector
from project_events.transports.base import EventTransport, PublishOptions
from .backoff import backoff_delay
from .circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


class RetryOrchestrator:
    """
    Args:
        transport: Performs each publish attempt
        circuit_breaker: Gate for high-priority attempts
        metrics: Counter sink
        sleep: Awaitable sleep in seconds (injectable for tests)
        jitter: Uniform [0, 1) source passed to the backoff policy
        default_max_retries: Global override of the per-event retry budget
        default_timeout: Global override of the per-event attempt timeout (seconds)
    """

    def __init__(
        self,
        transport: EventTransport,
        circuit_breaker: CircuitBreaker,
        metrics: MetricsCollector,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Callable[[], float] = random.random,
        default_max_retries: Optional[int] = None,
        default_timeout: Optional[float] = None,
    ):
        self.transport = transport
        self.circuit_breaker = circuit_breaker
        self.metrics = metrics
        self._sleep = sleep
        self._jitter = jitter
        self.default_max_retries = default_max_retries
        self.default_timeout = default_timeout

    def resolve_max_retries(self, envelope: EventEnvelope, max_retries: Optional[int] = None) -> int:
        if max_retries is None:
            max_retries = self.default_max_retries
        if max_retries is None:
            max_retries = get_event_metadata(envelope.event_type).max_retries
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        return max_retries

    async def publish_with_retry(
        self,
        envelope: EventEnvelope,
        max_retries: Optional[int] = None,
        priority: Optional[EventPriority] = None,
        timeout: Optional[float] = None,
    ) -> int:
        """
        Publish ``envelope``, retrying on failure.

        Args:
            envelope: Event to publish; the same envelope is sent on every attempt
            max_retries: Total attempt budget (default from event metadata)
            priority: HIGH routes attempts through the circuit breaker
                (default: the envelope's priority)
            timeout: Per-attempt timeout in seconds (default: global override, then event metadata)

        Returns:
            Number of attempts used

        Raises:
            RetryExhaustedError: After the final attempt fails
        """
        metadata = get_event_metadata(envelope.event_type)
        max_retries = self.resolve_max_retries(envelope, max_retries)
        priority = priority or envelope.priority
        timeout = timeout or self.default_timeout or metadata.timeout
        prefix = envelope.metric_prefix

        event_type = envelope.event_type.value
        body = envelope.to_wire()
        options = PublishOptions(
            correlation_id=envelope.correlation_id,
            timeout=timeout,
            event_id=envelope.event_id,
        )

        async def attempt_once() -> None:
            try:
                await asyncio.wait_for(
                    self.transport.publish(event_type, body, options), timeout=timeout
                )
            except asyncio.TimeoutError as exc:
                raise TransportError(
                    f"Publish of {event_type} timed out after {timeout}s"
                ) from exc

        last_error: Optional[Exception] = None

        for attempt in range(1, max_retries + 1):
            self.metrics.record(f"{prefix}_attempt")
            try:
                if priority is EventPriority.HIGH:
                    await self.circuit_breaker.execute(attempt_once)
                else:
                    await attempt_once()
            except Exception as error:
                last_error = error
                self.metrics.record(f"{prefix}_retry")

                if attempt == max_retries:
                    logger.error(
                        f"Event publishing failed after {max_retries} attempts: "
                        f"{event_type} ({error}), "
                        f"circuit breaker {self.circuit_breaker.state.value}"
                    )
                    break

                delay_ms = backoff_delay(attempt, metadata.retry_policy, self._jitter)
                logger.warning(
                    f"Event publish attempt {attempt} failed, retrying in {delay_ms:.0f}ms: "
                    f"{event_type} ({error}), {max_retries - attempt} attempts remaining"
                )
                await self._sleep(delay_ms / 1000)
                continue

            if attempt > 1:
                logger.info(f"Event {event_type} published successfully after {attempt} attempts")
                self.metrics.record(f"{prefix}_retry_success")
            return attempt

        self.metrics.record(f"{prefix}_failure")
        raise RetryExhaustedError(event_type, max_retries, last_error)
