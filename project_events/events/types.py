"""
Event type definitions and static routing metadata for project events.

Convention: ``{domain}.{action}`` with past tense actions. The domain is always
``project`` for this service.

Usage:
    from project_events.events.types import ProjectEventType, get_event_metadata

    metadata = get_event_metadata(ProjectEventType.PROJECT_DELETED)
    metadata.priority      # EventPriority.HIGH
    metadata.max_retries   # 5
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Tuple, Union


PROJECT_EVENT_NAMESPACE = "project"


# =============================================================================
# Event Types
# =============================================================================


class ProjectEventType(str, Enum):
    """Closed set of project events published to the orchestration service."""

    PROJECT_CREATED = f"{PROJECT_EVENT_NAMESPACE}.created"
    PROJECT_UPDATED = f"{PROJECT_EVENT_NAMESPACE}.updated"
    PROJECT_ARCHIVED = f"{PROJECT_EVENT_NAMESPACE}.archived"
    PROJECT_DELETED = f"{PROJECT_EVENT_NAMESPACE}.deleted"
    PROJECT_FILES_UPDATED = f"{PROJECT_EVENT_NAMESPACE}.files.updated"

    @property
    def metric_prefix(self) -> str:
        """Metric key prefix, e.g. ``project_files_updated``."""
        return self.value.replace(".", "_")


class EventPriority(str, Enum):
    """How critical delivery of an event is to the caller."""

    HIGH = "high"  # Failure propagates to the caller
    MEDIUM = "medium"  # Best effort, failure is logged and swallowed
    LOW = "low"  # Best effort, failure is logged and swallowed


class RetryPolicy(str, Enum):
    """Backoff strategy applied between publish attempts."""

    EXPONENTIAL = "exponential"
    LINEAR = "linear"


# =============================================================================
# Event Metadata
# =============================================================================


@dataclass(frozen=True)
class EventMetadata:
    description: str
    priority: EventPriority
    expected_consumers: Tuple[str, ...]
    retry_policy: RetryPolicy
    max_retries: int
    timeout: float  # seconds, per attempt


EVENT_METADATA: Dict[ProjectEventType, EventMetadata] = {
    ProjectEventType.PROJECT_CREATED: EventMetadata(
        description="Triggered when a new project is successfully created",
        priority=EventPriority.HIGH,
        expected_consumers=("orchestration-service",),
        retry_policy=RetryPolicy.EXPONENTIAL,
        max_retries=5,
        timeout=30.0,
    ),
    ProjectEventType.PROJECT_UPDATED: EventMetadata(
        description="Triggered when project metadata is modified",
        priority=EventPriority.MEDIUM,
        expected_consumers=("monitoring-service", "cache-service"),
        retry_policy=RetryPolicy.LINEAR,
        max_retries=3,
        timeout=15.0,
    ),
    ProjectEventType.PROJECT_ARCHIVED: EventMetadata(
        description="Triggered when project status changes to ARCHIVED",
        priority=EventPriority.MEDIUM,
        expected_consumers=("monitoring-service", "cleanup-service"),
        retry_policy=RetryPolicy.LINEAR,
        max_retries=3,
        timeout=15.0,
    ),
    ProjectEventType.PROJECT_DELETED: EventMetadata(
        description="Triggered when project is soft-deleted",
        priority=EventPriority.HIGH,
        expected_consumers=("file-storage-service", "statistics-service", "monitoring-service"),
        retry_policy=RetryPolicy.EXPONENTIAL,
        max_retries=5,
        timeout=45.0,
    ),
    ProjectEventType.PROJECT_FILES_UPDATED: EventMetadata(
        description="Triggered when generated file IDs are received from orchestrator",
        priority=EventPriority.HIGH,
        expected_consumers=("file-storage-service", "cache-service"),
        retry_policy=RetryPolicy.EXPONENTIAL,
        max_retries=5,
        timeout=30.0,
    ),
}


# =============================================================================
# Routing Groups
# =============================================================================

HIGH_PRIORITY_EVENTS: FrozenSet[ProjectEventType] = frozenset(
    event_type
    for event_type, metadata in EVENT_METADATA.items()
    if metadata.priority is EventPriority.HIGH
)

CACHE_INVALIDATION_EVENTS: FrozenSet[ProjectEventType] = frozenset(
    {
        ProjectEventType.PROJECT_UPDATED,
        ProjectEventType.PROJECT_ARCHIVED,
        ProjectEventType.PROJECT_DELETED,
        ProjectEventType.PROJECT_FILES_UPDATED,
    }
)

CLEANUP_EVENTS: FrozenSet[ProjectEventType] = frozenset(
    {ProjectEventType.PROJECT_ARCHIVED, ProjectEventType.PROJECT_DELETED}
)


# =============================================================================
# Helpers
# =============================================================================


def is_valid_event_type(event_type: str) -> bool:
    """Return True if ``event_type`` is one of the known project events."""
    try:
        ProjectEventType(event_type)
    except ValueError:
        return False
    return True


def get_event_metadata(event_type: Union[ProjectEventType, str]) -> EventMetadata:
    """Return static metadata for an event type.

    Raises:
        ValueError: If the event type is unknown
    """
    return EVENT_METADATA[ProjectEventType(event_type)]


def get_priority(event_type: Union[ProjectEventType, str]) -> EventPriority:
    return get_event_metadata(event_type).priority


def is_high_priority_event(event_type: Union[ProjectEventType, str]) -> bool:
    return ProjectEventType(event_type) in HIGH_PRIORITY_EVENTS


def requires_cache_invalidation(event_type: Union[ProjectEventType, str]) -> bool:
    return ProjectEventType(event_type) in CACHE_INVALIDATION_EVENTS


def requires_cleanup(event_type: Union[ProjectEventType, str]) -> bool:
    return ProjectEventType(event_type) in CLEANUP_EVENTS
