"""
Project event definitions.

This package contains:
- types: Event type enum, priorities, retry policies and the static metadata table
- base: The immutable EventEnvelope
- envelope: Envelope construction (event id + timestamp generation)
- domains: Payload models for each project event
"""

from project_events.events.types import (
    EVENT_METADATA,
    EventMetadata,
    EventPriority,
    ProjectEventType,
    RetryPolicy,
    get_event_metadata,
    get_priority,
    is_high_priority_event,
    is_valid_event_type,
    requires_cache_invalidation,
    requires_cleanup,
)
from project_events.events.base import EventEnvelope
from project_events.events.envelope import create_envelope
from project_events.events.domains.project import (
    FileCount,
    ProjectArchivedEvent,
    ProjectCreatedEvent,
    ProjectDeletedEvent,
    ProjectFilesUpdatedEvent,
    ProjectUpdatedEvent,
    get_payload_type,
)

__all__ = [
    # Types
    "EVENT_METADATA",
    "EventMetadata",
    "EventPriority",
    "ProjectEventType",
    "RetryPolicy",
    "get_event_metadata",
    "get_priority",
    "is_high_priority_event",
    "is_valid_event_type",
    "requires_cache_invalidation",
    "requires_cleanup",
    # Envelope
    "EventEnvelope",
    "create_envelope",
    # Payloads
    "FileCount",
    "ProjectArchivedEvent",
    "ProjectCreatedEvent",
    "ProjectDeletedEvent",
    "ProjectFilesUpdatedEvent",
    "ProjectUpdatedEvent",
    "get_payload_type",
]
