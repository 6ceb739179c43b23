"""
HTTP transport posting events to the orchestration service.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from project_events.errors import TransportError
from project_events.events.types import ProjectEventType, get_event_metadata
from .base import EventTransport, PublishOptions, redacted_url

logger = logging.getLogger(__name__)

EVENT_PATHS = {
    ProjectEventType.PROJECT_CREATED: "/events/project/created",
    ProjectEventType.PROJECT_UPDATED: "/events/project/updated",
    ProjectEventType.PROJECT_ARCHIVED: "/events/project/archived",
    ProjectEventType.PROJECT_DELETED: "/events/project/deleted",
    ProjectEventType.PROJECT_FILES_UPDATED: "/events/project/files/updated",
}
GENERIC_PATH = "/events/generic"

DEFAULT_HTTP_TIMEOUT = 15.0
HEALTH_CHECK_TIMEOUT = 5.0


class HttpEventTransport(EventTransport):
    """
    Posts each event as JSON to ``{base_url}/events/project/...``.

    Args:
        base_url: Orchestration service root URL
        service_token: Sent as ``X-Service-Token``; never logged
        default_timeout: Per-request timeout when neither options nor the
            event metadata provide one
        client: Optional preconfigured httpx.AsyncClient (tests inject one
            built on httpx.MockTransport)
    """

    kind = "http"

    def __init__(
        self,
        base_url: str,
        service_token: str,
        default_timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._service_token = service_token
        self.default_timeout = default_timeout
        self._client = client or httpx.AsyncClient(
            follow_redirects=False,
            headers={
                "User-Agent": "project-service-events/1.0.0",
                "Accept": "application/json",
            },
        )

    def target_url(self, event_type: str) -> str:
        try:
            path = EVENT_PATHS[ProjectEventType(event_type)]
        except ValueError:
            path = GENERIC_PATH
        return f"{self.base_url}{path}"

    def _timeout_for(self, event_type: str, options: Optional[PublishOptions]) -> float:
        if options and options.timeout:
            return options.timeout
        try:
            return get_event_metadata(event_type).timeout
        except ValueError:
            return self.default_timeout

    async def publish(
        self,
        event_type: str,
        body: Dict[str, Any],
        options: Optional[PublishOptions] = None,
    ) -> None:
        url = self.target_url(event_type)
        safe_url = redacted_url(url)
        timeout = self._timeout_for(event_type, options)

        headers = {
            "Content-Type": "application/json",
            "X-Service-Token": self._service_token,
            "X-Event-Type": str(event_type),
        }
        if options and options.correlation_id:
            headers["X-Correlation-ID"] = options.correlation_id

        logger.debug(f"Publishing {event_type} via HTTP to {safe_url} (timeout={timeout}s)")

        try:
            response = await self._client.post(url, json=body, headers=headers, timeout=timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error(f"HTTP event publish failed: {event_type} -> {safe_url} status={status}")
            raise TransportError(
                f"Receiver returned HTTP {status} for {event_type}", status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(
                f"HTTP event publish failed: {event_type} -> {safe_url}: {type(exc).__name__}"
            )
            raise TransportError(
                f"HTTP publish of {event_type} to {safe_url} failed: {type(exc).__name__}"
            ) from exc

        logger.debug(f"Event {event_type} published via HTTP (status={response.status_code})")

    async def health_check(self) -> bool:
        try:
            response = await self._client.get(
                f"{self.base_url}/health", timeout=HEALTH_CHECK_TIMEOUT
            )
            return response.is_success
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        await self._client.aclose()
        logger.debug("HTTP event transport closed")
