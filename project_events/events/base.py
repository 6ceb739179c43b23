"""
Core event envelope type for project events.

Every outbound event is wrapped in an immutable EventEnvelope carrying the
event type, the event-specific payload and the metadata generated at
construction time (event id, timestamp, source service, priority).
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, Dict, Optional

from project_events.events.types import EventPriority, ProjectEventType


ENVELOPE_VERSION = "1.0"


class EventEnvelope(BaseModel):
    """
    Immutable wrapper around one outbound event.

    The envelope is built once per publish call and never mutated; retries of
    the same call reuse it, so every attempt carries the same event_id.
    """

    event_id: str  # "evt_<uuid4>", fresh for every construction
    event_type: ProjectEventType
    event_timestamp: datetime  # UTC, strictly increasing within a process
    event_version: str = ENVELOPE_VERSION
    source_service: str
    correlation_id: Optional[str] = None  # Passed through unvalidated
    priority: EventPriority
    payload: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def metric_prefix(self) -> str:
        return self.event_type.metric_prefix

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready body sent to the orchestration service."""
        body = dict(self.payload)
        body.update(
            {
                "eventType": self.event_type.value,
                "correlationId": self.correlation_id,
                "sourceService": self.source_service,
                "eventMetadata": {
                    "eventId": self.event_id,
                    "eventTimestamp": self.event_timestamp.isoformat(),
                    "eventVersion": self.event_version,
                    "sourceService": self.source_service,
                },
            }
        )
        return body
