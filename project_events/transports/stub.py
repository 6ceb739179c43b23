"""
Stub transport for environments without a configured receiver.

Events are only logged. A simulated delay and failure rate can be configured
to exercise retry behaviour locally.
"""

import asyncio
import logging
import random
from typing import Any, Callable, Dict, Optional

from project_events.errors import TransportError
from .base import EventTransport, PublishOptions

logger = logging.getLogger(__name__)


class StubEventTransport(EventTransport):
    kind = "stub"

    def __init__(
        self,
        simulate_delay: bool = False,
        delay_ms: int = 100,
        failure_rate: float = 0.0,
        detailed_logging: bool = False,
        rng: Callable[[], float] = random.random,
    ):
        self.simulate_delay = simulate_delay
        self.delay_ms = delay_ms
        self.failure_rate = failure_rate
        self.detailed_logging = detailed_logging
        self._rng = rng
        self.publish_count = 0

    async def publish(
        self,
        event_type: str,
        body: Dict[str, Any],
        options: Optional[PublishOptions] = None,
    ) -> None:
        self.publish_count += 1
        correlation_id = options.correlation_id if options else None

        logger.warning(
            f"[STUB] Event would be published: {event_type} "
            f"(keys={sorted(body)}, correlation_id={correlation_id}, "
            f"publish_count={self.publish_count})"
        )

        if self.simulate_delay:
            await asyncio.sleep(self.delay_ms / 1000)

        if self.failure_rate > 0 and self._rng() < self.failure_rate:
            raise TransportError(f"Simulated failure (rate: {self.failure_rate})")

        if self.detailed_logging:
            logger.debug(f"[STUB] Event payload: {body}")

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        logger.info(f"[STUB] Transport closed. Total events published: {self.publish_count}")
