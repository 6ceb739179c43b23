"""
Project event payload definitions.

Payloads are serialized with camelCase keys, which is what the orchestration
service expects. Construct them with either snake_case field names or the
camelCase aliases.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class ProjectEventPayload(BaseModel):
    """Common configuration for all project payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    project_id: str
    owner_id: str


class ProjectCreatedEvent(ProjectEventPayload):
    """
    A new project was created.

    Published when: Project creation transaction commits
    Consumed by: Orchestration service (starts document generation)
    Routing Key: project.created
    """

    name: str
    description: Optional[str] = None
    initial_prompt: str
    uploaded_file_ids: List[str] = Field(default_factory=list)
    has_uploaded_files: bool = False
    prompt_complexity: str
    created_at: datetime


class ProjectUpdatedEvent(ProjectEventPayload):
    """
    Project metadata (name, description) was modified.

    Consumed by: Monitoring, cache services
    Routing Key: project.updated
    """

    changes: Dict[str, Any] = Field(default_factory=dict)
    modified_fields: List[str] = Field(default_factory=list)
    updated_at: datetime


class ProjectArchivedEvent(ProjectEventPayload):
    """
    Project status changed to ARCHIVED.

    Consumed by: Monitoring, cleanup services
    Routing Key: project.archived
    """

    previous_status: str
    archived_at: datetime


class FileCount(BaseModel):
    uploaded: int
    generated: int
    total: int


class ProjectDeletedEvent(ProjectEventPayload):
    """
    Project was soft-deleted.

    Consumed by: Every service holding project references
    Routing Key: project.deleted
    """

    previous_status: str
    had_generated_files: bool
    file_count: FileCount
    deleted_at: datetime


class ProjectFilesUpdatedEvent(ProjectEventPayload):
    """
    Generated file ids were received from the orchestrator.

    Consumed by: File storage, user interfaces, cache services
    Routing Key: project.files.updated
    """

    new_file_ids: List[str]
    update_mode: str
    total_generated_files: int
    updated_at: datetime

    @computed_field(alias="fileCount")
    @property
    def file_count(self) -> int:
        return len(self.new_file_ids)


ROUTING_KEYS = {
    "ProjectCreatedEvent": "project.created",
    "ProjectUpdatedEvent": "project.updated",
    "ProjectArchivedEvent": "project.archived",
    "ProjectDeletedEvent": "project.deleted",
    "ProjectFilesUpdatedEvent": "project.files.updated",
}


def get_payload_type(event_type: str) -> Type[ProjectEventPayload]:
    """Return the payload model for a routing key.

    Raises:
        KeyError: If no payload model is registered for the routing key
    """
    for class_name, routing_key in ROUTING_KEYS.items():
        if routing_key == event_type:
            return globals()[class_name]
    raise KeyError(f"No payload type registered for event type: {event_type}")
