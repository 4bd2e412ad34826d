"""Project domain models."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, GetCoreSchemaHandler, computed_field
from pydantic_core import core_schema

from stackyard.models.container import Container, ContainerState

MAX_PROJECT_NAME_LENGTH = 100
_FORBIDDEN_NAME_CHARACTERS = frozenset('/\\:*?"<>|\x00')


class InvalidProjectNameError(ValueError):
    """Raised when a string cannot be used as a project name."""


class ProjectName(str):
    """Validated project name.

    The name is used as a directory name under both workspace roots, so it must be
    non-empty, at most 100 characters and free of path separators and other
    characters that are unsafe in file names.
    """

    __slots__ = ()

    def __new__(cls, value: str) -> ProjectName:
        if isinstance(value, ProjectName):
            return value
        if not isinstance(value, str):
            msg = f"Project name must be a string, got {type(value).__name__}"
            raise InvalidProjectNameError(msg)
        if not value.strip():
            raise InvalidProjectNameError("Project name cannot be empty")
        if len(value) > MAX_PROJECT_NAME_LENGTH:
            msg = f"Project name cannot exceed {MAX_PROJECT_NAME_LENGTH} characters"
            raise InvalidProjectNameError(msg)
        if any(char in _FORBIDDEN_NAME_CHARACTERS for char in value):
            raise InvalidProjectNameError("Project name contains invalid characters")
        return super().__new__(cls, value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        del source_type, handler
        return core_schema.no_info_after_validator_function(cls, core_schema.str_schema())


class GitSource(BaseModel):
    """Where a project's code lives and which compose file to run."""

    model_config = ConfigDict(frozen=True)

    url: str
    branch: str
    path: str = ""


class ProjectFile(BaseModel):
    """Persisted project declaration (`project.yaml`)."""

    model_config = ConfigDict(frozen=True)

    name: ProjectName
    source: GitSource


class ProjectStatusKind(str, Enum):
    """Discriminator for derived project status."""

    RUNNING = "running"
    STOPPED = "stopped"
    PARTIALLY_RUNNING = "partially_running"
    CREATION_IN_PROGRESS = "creation_in_progress"
    DEPLOYMENT_FAILED = "deployment_failed"
    UNKNOWN = "unknown"


class ProjectStatus(BaseModel):
    """Operational status of a project, derived from its containers."""

    model_config = ConfigDict(frozen=True)

    kind: ProjectStatusKind
    active: int | None = None
    total: int | None = None
    reason: str | None = None

    @classmethod
    def running(cls, active: int, total: int) -> ProjectStatus:
        return cls(kind=ProjectStatusKind.RUNNING, active=active, total=total)

    @classmethod
    def partially_running(cls, active: int, total: int) -> ProjectStatus:
        return cls(kind=ProjectStatusKind.PARTIALLY_RUNNING, active=active, total=total)

    @classmethod
    def stopped(cls) -> ProjectStatus:
        return cls(kind=ProjectStatusKind.STOPPED)

    @classmethod
    def creation_in_progress(cls) -> ProjectStatus:
        return cls(kind=ProjectStatusKind.CREATION_IN_PROGRESS)

    @classmethod
    def deployment_failed(cls, reason: str) -> ProjectStatus:
        return cls(kind=ProjectStatusKind.DEPLOYMENT_FAILED, reason=reason)

    @classmethod
    def unknown(cls) -> ProjectStatus:
        return cls(kind=ProjectStatusKind.UNKNOWN)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display(self) -> str:
        """Human-readable status label."""
        match self.kind:
            case ProjectStatusKind.RUNNING:
                return f"Running ({self.active}/{self.total})"
            case ProjectStatusKind.STOPPED:
                return "Exited"
            case ProjectStatusKind.PARTIALLY_RUNNING:
                return f"Partially Running ({self.active}/{self.total})"
            case ProjectStatusKind.CREATION_IN_PROGRESS:
                return "Creating..."
            case ProjectStatusKind.DEPLOYMENT_FAILED:
                return f"Failed: {self.reason}"
            case _:
                return "Unknown"


def derive_status(containers: Iterable[Container]) -> ProjectStatus:
    """Map a container snapshot to a project status.

    An empty snapshot is `unknown` because a project that was never started looks
    the same as one that has not been deployed yet.
    """
    snapshot = list(containers)
    total = len(snapshot)
    if total == 0:
        return ProjectStatus.unknown()
    active = sum(1 for container in snapshot if container.state is ContainerState.RUNNING)
    if active == 0:
        return ProjectStatus.stopped()
    if active == total:
        return ProjectStatus.running(active, total)
    return ProjectStatus.partially_running(active, total)


class Project(BaseModel):
    """Project read-model returned to callers."""

    name: ProjectName
    source: GitSource
    status: ProjectStatus
    last_updated_at: datetime | None = None
