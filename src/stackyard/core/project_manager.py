"""Project orchestration: workspace state, provisioning and live status."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from functools import partial

from stackyard.config import WorkspaceSettings
from stackyard.core.compose_manager import ComposeManager
from stackyard.core.errors import (
    ComposeError,
    CreateProjectFailed,
    GitError,
    InvalidPath,
    ListProjectsFailed,
    ProjectNotFound,
)
from stackyard.core.git_manager import GitManager
from stackyard.core.provisioning import (
    ProvisioningPhase,
    ProvisioningRecord,
    ProvisioningTracker,
    ReportPhase,
)
from stackyard.core.workspace import ProjectPaths, Workspace
from stackyard.models.project import (
    GitSource,
    InvalidProjectNameError,
    Project,
    ProjectFile,
    ProjectName,
    ProjectStatus,
    derive_status,
)

logger = logging.getLogger(__name__)


def build_definition(name: str, source: GitSource) -> ProjectFile:
    """Validate raw input into a project definition."""
    try:
        project_name = ProjectName(name)
    except InvalidProjectNameError as exc:
        raise CreateProjectFailed(name, str(exc), client_fault=True) from exc
    return ProjectFile(name=project_name, source=source)


class ProjectManager:
    """Create and list projects backed by git checkouts and compose files."""

    def __init__(
        self,
        settings: WorkspaceSettings,
        *,
        compose: ComposeManager | None = None,
        git: GitManager | None = None,
        tracker: ProvisioningTracker | None = None,
    ) -> None:
        self._settings = settings
        self._workspace = Workspace(settings.projects_dir, settings.repositories_dir)
        self._compose = compose or ComposeManager()
        self._git = git or GitManager()
        self._tracker = tracker or ProvisioningTracker(
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="provision")
        )

    def create_project(self, definition: ProjectFile) -> ProvisioningRecord:
        """Write the manifest and start provisioning in the background.

        Returns once the directories exist and the manifest is on disk. Clone and
        compose-up failures are recorded on the provisioning record only.
        """
        name = definition.name
        try:
            ProjectName(name)
        except InvalidProjectNameError as exc:
            raise CreateProjectFailed(name, str(exc), client_fault=True) from exc
        if not definition.source.url.strip():
            raise CreateProjectFailed(name, "source.url cannot be empty", client_fault=True)
        if not definition.source.branch.strip():
            raise CreateProjectFailed(name, "source.branch cannot be empty", client_fault=True)

        paths = self._workspace.paths_for(name, definition.source.path)
        self._workspace.prepare(definition, paths)
        logger.info("Created project %s, manifest at %s", name, paths.manifest_file)

        try:
            return self._tracker.submit(
                name, partial(self._provision, definition.source, paths)
            )
        except RuntimeError as exc:
            msg = f"provisioning could not be scheduled: {exc}"
            raise CreateProjectFailed(name, msg) from exc

    def list_projects(self) -> list[Project]:
        definitions = self._workspace.discover()
        projects = [self._to_project(definition) for definition in definitions]
        logger.debug("Listed %d project(s)", len(projects))
        return projects

    def stop_project(self, name: str) -> None:
        """Run compose-down for an existing project."""
        definition = self._require(name)
        paths = self._workspace.paths_for(definition.name, definition.source.path)
        self._compose.down(paths.compose_file)

    def sync_project(self, name: str) -> None:
        """Pull (or clone, when there is no checkout yet) and bring the services up again."""
        definition = self._require(name)
        paths = self._workspace.paths_for(definition.name, definition.source.path)
        self._checkout(definition.source, paths)
        self._compose.up(paths.compose_file)
        self._tracker.discard(definition.name)

    def provisioning(self, name: str) -> ProvisioningRecord | None:
        return self._tracker.get(name)

    def _provision(self, source: GitSource, paths: ProjectPaths, report: ReportPhase) -> None:
        report(ProvisioningPhase.CLONING)
        self._checkout(source, paths)
        report(ProvisioningPhase.STARTING)
        self._compose.up(paths.compose_file)

    def _checkout(self, source: GitSource, paths: ProjectPaths) -> None:
        # The repository directory exists from creation on, so only a .git marks a checkout.
        if (paths.repository_dir / ".git").exists():
            self._git.pull(source, paths.repository_dir)
        else:
            self._git.clone(source, paths.repository_dir)

    def _require(self, name: str) -> ProjectFile:
        try:
            ProjectName(name)
        except InvalidProjectNameError as exc:
            raise ProjectNotFound(name, str(exc)) from exc
        definition = self._workspace.find(name)
        if definition is None:
            raise ProjectNotFound(name, "no project manifest")
        return definition

    def _to_project(self, definition: ProjectFile) -> Project:
        record = self._tracker.get(definition.name)
        if record is not None and record.active:
            return self._project(definition, ProjectStatus.creation_in_progress())
        if record is not None and record.phase is ProvisioningPhase.FAILED:
            reason = record.error or "provisioning failed"
            return self._project(definition, ProjectStatus.deployment_failed(reason))

        try:
            paths = self._workspace.paths_for(definition.name, definition.source.path)
        except InvalidPath as exc:
            raise ListProjectsFailed(f"manifest for {definition.name!r}: {exc}") from exc
        try:
            status = self._status_for(paths)
            last_updated_at = self._last_updated_at(definition, paths)
        except (ListProjectsFailed, ProjectNotFound) as exc:
            if not self._settings.isolate_project_failures:
                raise
            logger.warning("Project %s is unavailable [%s]: %s", definition.name, exc.code, exc)
            return self._project(definition, ProjectStatus.deployment_failed(exc.reason))
        return Project(
            name=definition.name,
            source=definition.source,
            status=status,
            last_updated_at=last_updated_at,
        )

    def _status_for(self, paths: ProjectPaths) -> ProjectStatus:
        try:
            containers = self._compose.list_containers(paths.compose_file)
        except ComposeError as exc:
            raise ListProjectsFailed(str(exc)) from exc
        return derive_status(containers)

    def _last_updated_at(self, definition: ProjectFile, paths: ProjectPaths) -> datetime:
        try:
            return self._git.last_commit_timestamp(paths.repository_dir)
        except GitError as exc:
            raise ProjectNotFound(definition.name, str(exc)) from exc

    @staticmethod
    def _project(definition: ProjectFile, status: ProjectStatus) -> Project:
        return Project(name=definition.name, source=definition.source, status=status)
