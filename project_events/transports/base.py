"""
Transport capability.

A transport performs exactly one publish attempt. It raises TransportError on
failure and never retries on its own; retries, backoff and circuit breaking
belong to the RetryOrchestrator.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse, urlunparse


@dataclass(frozen=True)
class PublishOptions:
    correlation_id: Optional[str] = None
    timeout: Optional[float] = None  # seconds, per attempt
    event_id: Optional[str] = None


class EventTransport(ABC):
    """Pluggable mechanism performing one publish attempt."""

    kind: str = "abstract"

    @abstractmethod
    async def publish(
        self,
        event_type: str,
        body: Dict[str, Any],
        options: Optional[PublishOptions] = None,
    ) -> None:
        """Publish one event.

        Raises:
            TransportError: If the attempt failed
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability probe. Must not raise."""

    async def close(self) -> None:
        """Release resources. Nothing is drained."""


def redacted_url(url: str) -> str:
    """Redact credentials from URL for safe logging."""
    parsed = urlparse(url)
    if not parsed.netloc:
        return url
    host = parsed.hostname or ""
    port = f":{parsed.port}" if parsed.port else ""
    new_netloc = host + port
    redacted = parsed._replace(netloc=new_netloc)
    return urlunparse(redacted)
