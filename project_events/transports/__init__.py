"""
Event transports.

- http: POST to the orchestration service (httpx)
- rabbit: publish to a RabbitMQ topic exchange (aio-pika)
- stub: log only, for development
"""

import logging
from typing import Optional

from project_events.config import Settings, settings as default_settings
from .base import EventTransport, PublishOptions, redacted_url
from .http import DEFAULT_HTTP_TIMEOUT, HttpEventTransport
from .rabbit import RabbitEventTransport
from .stub import StubEventTransport

logger = logging.getLogger(__name__)


def create_transport(settings: Optional[Settings] = None) -> EventTransport:
    """Build the transport selected by ``EVENT_TRANSPORT``; unknown values fall back to stub."""
    settings = settings or default_settings
    transport_type = settings.event_transport.strip().lower()

    logger.info(f"Initializing {transport_type} event transport")

    if transport_type == "http":
        return HttpEventTransport(
            base_url=settings.orchestration_service_url,
            service_token=settings.internal_service_token.get_secret_value(),
            default_timeout=settings.events_http_timeout or DEFAULT_HTTP_TIMEOUT,
        )

    if transport_type == "rabbit":
        return RabbitEventTransport(settings.rabbit_url, settings.exchange_name)

    if transport_type != "stub":
        logger.warning(f"Unknown EVENT_TRANSPORT '{transport_type}', falling back to stub")
    logger.warning("USING STUB event transport - events are only logged, not published!")
    return StubEventTransport(
        simulate_delay=settings.event_stub_simulate_delay,
        delay_ms=settings.event_stub_delay_ms,
        failure_rate=settings.event_stub_failure_rate,
        detailed_logging=settings.event_stub_detailed_logging,
    )


__all__ = [
    "EventTransport",
    "PublishOptions",
    "HttpEventTransport",
    "RabbitEventTransport",
    "StubEventTransport",
    "create_transport",
    "redacted_url",
]
