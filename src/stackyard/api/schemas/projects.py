"""Project API schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from stackyard.core.provisioning import ProvisioningPhase, ProvisioningRecord
from stackyard.models.project import GitSource, Project


class CreateProjectRequest(BaseModel):
    """Payload for creating a project; same shape as `project.yaml`."""

    name: str
    source: GitSource


class CreateProjectResponse(BaseModel):
    name: str
    phase: ProvisioningPhase


class ProjectsResponse(BaseModel):
    """Collection response for projects."""

    items: list[Project]


class ProvisioningResponse(BaseModel):
    """Outcome of the latest provisioning run for a project."""

    project_name: str
    phase: ProvisioningPhase
    started_at: datetime
    finished_at: datetime | None = None
    error_code: str | None = None
    error: str | None = None

    @classmethod
    def from_record(cls, record: ProvisioningRecord) -> ProvisioningResponse:
        return cls(
            project_name=record.project_name,
            phase=record.phase,
            started_at=record.started_at,
            finished_at=record.finished_at,
            error_code=record.error_code,
            error=record.error,
        )


class ProjectActionResponse(BaseModel):
    name: str
    result: str = "ok"


class ProblemResponse(BaseModel):
    """Error body returned for orchestration failures."""

    title: str
    detail: str
    code: str
