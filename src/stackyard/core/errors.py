"""Error taxonomy for project orchestration."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar


class StackyardError(Exception):
    """Base class for all orchestration errors."""

    code: ClassVar[str] = "E000"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(StackyardError):
    code = "C100"


class ProjectError(StackyardError):
    """Failures raised by the project orchestrator."""


class CreateProjectFailed(ProjectError):
    code = "P100"

    def __init__(self, project_name: str, reason: str, *, client_fault: bool = False) -> None:
        super().__init__(f"Failed to create project '{project_name}': {reason}")
        self.project_name = project_name
        self.reason = reason
        self.client_fault = client_fault


class ListProjectsFailed(ProjectError):
    code = "P101"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to list projects: {reason}")
        self.reason = reason


class InvalidPath(ProjectError):
    code = "P102"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid path: {reason}")
        self.reason = reason


class ProjectNotFound(ProjectError):
    code = "P104"

    def __init__(self, project_name: str, reason: str) -> None:
        super().__init__(f"Project '{project_name}' not found: {reason}")
        self.project_name = project_name
        self.reason = reason


class ComposeError(StackyardError):
    """Failures raised by the compose collaborator."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


class ComposeFileNotFound(ComposeError):
    code = "D103"

    def __init__(self, path: Path) -> None:
        super().__init__(f"Compose file not found: {path}", path)


class UpFailed(ComposeError):
    code = "D100"

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to start services in {path}: {reason}", path)
        self.reason = reason


class DownFailed(ComposeError):
    code = "D101"

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to stop services in {path}: {reason}", path)
        self.reason = reason


class ListContainersFailed(ComposeError):
    code = "D102"

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to list containers in {path}: {reason}", path)
        self.reason = reason


class GitError(StackyardError):
    """Failures raised by the git collaborator."""


class CloneFailed(GitError):
    code = "G100"

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to clone repository from {url}: {reason}")
        self.url = url
        self.reason = reason


class PullFailed(GitError):
    code = "G101"

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to pull latest changes for {path}: {reason}")
        self.path = path
        self.reason = reason


class GetLastCommitTimestampFailed(GitError):
    code = "G102"

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to get last commit timestamp from {path}: {reason}")
        self.path = path
        self.reason = reason
