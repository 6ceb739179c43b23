"""
Event publisher for project domain events.

Central entry point used by the project service to notify the orchestration
service of state changes. It builds the envelope, picks the priority and retry
budget from static metadata, delegates delivery to the RetryOrchestrator and
decides what a final failure means for the caller:

- HIGH priority (created, deleted, files updated): the error is re-raised
- MEDIUM/LOW priority (updated, archived): the error is logged and swallowed
"""

import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Type, Union

from pydantic import BaseModel

from project_events.config import Settings, settings as default_settings
from project_events.errors import EventPublishError
from project_events.events.envelope import create_envelope
from project_events.events.types import EventPriority, ProjectEventType
from project_events.events.domains.project import (
    ProjectArchivedEvent,
    ProjectCreatedEvent,
    ProjectDeletedEvent,
    ProjectEventPayload,
    ProjectFilesUpdatedEvent,
    ProjectUpdatedEvent,
    get_payload_type,
)
from project_events.metrics import MetricsCollector, MetricsScheduler
from project_events.resilience.circuit_breaker import CircuitBreaker
from project_events.resilience.retry import RetryOrchestrator
from project_events.transports import EventTransport, create_transport

logger = logging.getLogger(__name__)

EventData = Union[BaseModel, Dict[str, Any]]


class EventPublisher:
    """
    Resilient publisher for project events.

    Each instance owns its circuit breaker and metrics; two publishers never
    share state unless the same objects are passed to both.

    Usage:
        async with EventPublisher(create_transport()) as publisher:
            await publisher.publish_project_created(event, correlation_id="req-1")
            status = await publisher.health_check()

    Args:
        transport: Performs the actual publish attempts
        settings: Configuration (default: module-level settings)
        circuit_breaker: Breaker for high-priority events (default: built from settings)
        metrics: Metrics collector (default: a fresh one)
        sleep: Backoff sleep, injectable for tests
        jitter: Backoff jitter source, injectable for tests
    """

    def __init__(
        self,
        transport: EventTransport,
        settings: Optional[Settings] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        metrics: Optional[MetricsCollector] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        jitter: Optional[Callable[[], float]] = None,
    ):
        self.settings = settings or default_settings
        self.transport = transport
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            threshold=self.settings.circuit_breaker_threshold,
            cooldown=self.settings.circuit_breaker_cooldown,
        )
        self.metrics = metrics or MetricsCollector()

        orchestrator_kwargs: Dict[str, Any] = {
            "default_max_retries": self.settings.event_max_retries,
            "default_timeout": self.settings.events_http_timeout,
        }
        if sleep is not None:
            orchestrator_kwargs["sleep"] = sleep
        if jitter is not None:
            orchestrator_kwargs["jitter"] = jitter
        self.orchestrator = RetryOrchestrator(
            transport, self.circuit_breaker, self.metrics, **orchestrator_kwargs
        )

        self.scheduler = MetricsScheduler(
            self.metrics,
            summary_interval=self.settings.metrics_summary_interval,
            reset_interval=self.settings.metrics_reset_interval,
            context=self._summary_context,
        )
        self._start_time = time.monotonic()
        self._last_error: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "EventPublisher":
        settings = settings or default_settings
        return cls(create_transport(settings), settings=settings, **kwargs)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Probe the transport and start periodic metrics housekeeping."""
        try:
            healthy = await self.transport.health_check()
        except Exception as e:
            logger.warning(f"Event transport health check raised: {e}")
            healthy = False
        if not healthy:
            logger.warning(
                "Event transport health check failed - continuing with degraded functionality"
            )
        self.scheduler.start()
        logger.info(f"EventPublisher started ({self.transport.kind} transport)")

    async def close(self) -> None:
        await self.scheduler.stop()
        try:
            await self.transport.close()
        except Exception as e:
            logger.error(f"Error closing event transport: {e}")
        self.scheduler.log_summary()
        logger.info("EventPublisher closed")

    async def __aenter__(self) -> "EventPublisher":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Typed publish operations
    # ------------------------------------------------------------------

    async def publish_project_created(
        self,
        event: Union[ProjectCreatedEvent, Dict[str, Any]],
        correlation_id: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> None:
        """Critical: starts the document generation workflow. Raises on failure."""
        await self.publish(ProjectEventType.PROJECT_CREATED, event, correlation_id, max_retries)

    async def publish_project_updated(
        self,
        event: Union[ProjectUpdatedEvent, Dict[str, Any]],
        correlation_id: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> None:
        """Best effort: cache invalidation and monitoring. Never raises on delivery failure."""
        await self.publish(ProjectEventType.PROJECT_UPDATED, event, correlation_id, max_retries)

    async def publish_project_archived(
        self,
        event: Union[ProjectArchivedEvent, Dict[str, Any]],
        correlation_id: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> None:
        """Best effort: resource cleanup. Never raises on delivery failure."""
        await self.publish(ProjectEventType.PROJECT_ARCHIVED, event, correlation_id, max_retries)

    async def publish_project_deleted(
        self,
        event: Union[ProjectDeletedEvent, Dict[str, Any]],
        correlation_id: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> None:
        """Critical: referential integrity across services. Raises on failure."""
        await self.publish(ProjectEventType.PROJECT_DELETED, event, correlation_id, max_retries)

    async def publish_project_files_updated(
        self,
        event: Union[ProjectFilesUpdatedEvent, Dict[str, Any]],
        correlation_id: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> None:
        """Critical: user deliverables are ready. Raises on failure."""
        await self.publish(
            ProjectEventType.PROJECT_FILES_UPDATED, event, correlation_id, max_retries
        )

    # ------------------------------------------------------------------
    # Generic publish
    # ------------------------------------------------------------------

    async def publish(
        self,
        event_type: Union[ProjectEventType, str],
        event: EventData,
        correlation_id: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> None:
        """
        Publish one event with retry and priority-based failure disposition.

        Args:
            event_type: Project event type
            event: Payload model or dict (validated against the event's payload model)
            correlation_id: Passed through unmodified
            max_retries: Overrides the per-event retry budget

        Raises:
            ValueError: Unknown event type, or max_retries below 1
            pydantic.ValidationError: Payload does not match the event's model
            RetryExhaustedError: Delivery of a HIGH priority event failed
        """
        event_type = ProjectEventType(event_type)
        payload = self._coerce_payload(event_type, event)
        envelope = create_envelope(
            event_type,
            payload,
            correlation_id=correlation_id,
            source_service=self.settings.service_name,
        )
        max_retries = self.orchestrator.resolve_max_retries(envelope, max_retries)
        prefix = envelope.metric_prefix
        started = time.monotonic()

        try:
            attempts = await self.orchestrator.publish_with_retry(
                envelope, max_retries=max_retries, priority=envelope.priority
            )
        except EventPublishError as error:
            self._last_error = str(error)
            self.metrics.record(f"{prefix}_error")
            logger.error(
                f"Failed to publish {event_type.value} event "
                f"(project_id={payload.project_id}, event_id={envelope.event_id}, "
                f"correlation_id={correlation_id}): {error}"
            )
            if envelope.priority is EventPriority.HIGH:
                raise
            return

        duration_ms = (time.monotonic() - started) * 1000
        self.metrics.record(f"{prefix}_success")
        self.metrics.record(f"{prefix}_duration_ms", duration_ms)
        logger.info(
            f"Project {event_type.value} event published successfully "
            f"(project_id={payload.project_id}, event_id={envelope.event_id}, "
            f"correlation_id={correlation_id}, attempts={attempts}, "
            f"duration={duration_ms:.0f}ms)"
        )

    @staticmethod
    def _coerce_payload(event_type: ProjectEventType, event: EventData) -> ProjectEventPayload:
        payload_type: Type[ProjectEventPayload] = get_payload_type(event_type.value)
        if isinstance(event, payload_type):
            return event
        if isinstance(event, BaseModel):
            event = event.model_dump()
        return payload_type.model_validate(event)

    # ------------------------------------------------------------------
    # Health and metrics
    # ------------------------------------------------------------------

    @property
    def uptime_ms(self) -> int:
        return int((time.monotonic() - self._start_time) * 1000)

    async def health_check(self) -> Dict[str, Any]:
        """
        Health of the event publishing path. Never raises.

        Returns:
            {status, transport_kind, circuit_breaker_state, uptime_ms, metrics,
             last_error?}
        """
        status: Dict[str, Any] = {
            "status": "unhealthy",
            "transport_kind": self.transport.kind,
            "circuit_breaker_state": self.circuit_breaker.state.value,
            "uptime_ms": self.uptime_ms,
            "metrics": self.get_metrics(),
        }
        try:
            healthy = await self.transport.health_check()
        except Exception as e:
            status["last_error"] = type(e).__name__
            return status

        status["status"] = "healthy" if healthy else "unhealthy"
        if self._last_error:
            status["last_error"] = self._last_error
        return status

    def get_metrics(self) -> Dict[str, float]:
        try:
            return self.metrics.snapshot()
        except Exception as e:
            logger.error(f"Failed to read event metrics: {e}")
            return {}

    def reset_metrics(self) -> None:
        try:
            self.metrics.reset()
        except Exception as e:
            logger.error(f"Failed to reset event metrics: {e}")

    def _summary_context(self) -> Dict[str, object]:
        return {
            "uptime_ms": self.uptime_ms,
            "circuit_breaker_state": self.circuit_breaker.state.value,
            "circuit_breaker_failures": self.circuit_breaker.failure_count,
        }
