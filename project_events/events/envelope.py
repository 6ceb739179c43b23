"""
Event envelope creation.

This module provides the single entry point for building envelopes. It owns the
two pieces of metadata that must be generated at construction time rather than
at publish time: the event id and the event timestamp.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union
from uuid import uuid4

from pydantic import BaseModel

from project_events.config import settings
from .base import EventEnvelope
from .types import ProjectEventType, get_priority


_timestamp_lock = threading.Lock()
_last_timestamp: Optional[datetime] = None


def generate_event_id() -> str:
    return f"evt_{uuid4()}"


def next_event_timestamp() -> datetime:
    """
    Return the current UTC time, strictly greater than any previous result.

    Wall clocks can repeat a reading (coarse resolution) or step backwards; in
    both cases the previous timestamp is bumped by one microsecond.
    """
    global _last_timestamp
    with _timestamp_lock:
        now = datetime.now(timezone.utc)
        if _last_timestamp is not None and now <= _last_timestamp:
            now = _last_timestamp + timedelta(microseconds=1)
        _last_timestamp = now
        return now


def create_envelope(
    event_type: Union[ProjectEventType, str],
    payload: Union[BaseModel, Dict[str, Any]],
    correlation_id: Optional[str] = None,
    source_service: Optional[str] = None,
) -> EventEnvelope:
    """
    Create a properly-formed event envelope.

    Args:
        event_type: One of the project event types (enum or routing key string)
        payload: Payload model (dumped by alias, JSON mode) or a plain dict
        correlation_id: Optional caller-supplied id, passed through unmodified
        source_service: Publisher identity (default from settings)

    Returns:
        A frozen EventEnvelope with a fresh event id and timestamp

    Raises:
        ValueError: If event_type is not a known project event

    Example:
        >>> envelope = create_envelope(
        ...     "project.updated",
        ...     {"projectId": "p-1"},
        ...     correlation_id="req-42",
        ... )
        >>> envelope.priority
        <EventPriority.MEDIUM: 'medium'>
    """
    event_type = ProjectEventType(event_type)

    if isinstance(payload, BaseModel):
        body = payload.model_dump(mode="json", by_alias=True)
    else:
        body = dict(payload)

    return EventEnvelope(
        event_id=generate_event_id(),
        event_type=event_type,
        event_timestamp=next_event_timestamp(),
        source_service=source_service or settings.service_name,
        correlation_id=correlation_id,
        priority=get_priority(event_type),
        payload=body,
    )
