"""Workspace layout: manifests root and repositories root keyed by project name."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import ValidationError

from stackyard.core.compose_manager import find_compose_file
from stackyard.core.errors import CreateProjectFailed, InvalidPath, ListProjectsFailed
from stackyard.models.project import ProjectFile

MANIFEST_FILENAME = "project.yaml"
MANIFEST_PATTERNS = ("*.yml", "*.yaml")


@dataclass(slots=True, frozen=True)
class ProjectPaths:
    """On-disk locations derived from a single project name."""

    manifest_dir: Path
    manifest_file: Path
    repository_dir: Path
    compose_path: str

    @property
    def compose_file(self) -> Path:
        if self.compose_path:
            return self.repository_dir / self.compose_path
        return find_compose_file(self.repository_dir)


class Workspace:
    """Manifests root plus repositories root."""

    def __init__(self, projects_dir: Path, repositories_dir: Path) -> None:
        self.projects_dir = Path(projects_dir)
        self.repositories_dir = Path(repositories_dir)

    def paths_for(self, name: str, compose_path: str = "") -> ProjectPaths:
        if name in {".", ".."} or "\x00" in name:
            raise InvalidPath(f"project name {name!r} is not a usable directory name")
        if "\x00" in compose_path:
            raise InvalidPath(f"compose path {compose_path!r} contains a NUL byte")
        if compose_path:
            if Path(compose_path).is_absolute():
                raise InvalidPath(f"compose path {compose_path!r} must be relative")
            normalized = Path(os.path.normpath(compose_path))
            if normalized.parts and normalized.parts[0] == "..":
                raise InvalidPath(f"compose path {compose_path!r} escapes the repository")

        manifest_dir = self.projects_dir / name
        return ProjectPaths(
            manifest_dir=manifest_dir,
            manifest_file=manifest_dir / MANIFEST_FILENAME,
            repository_dir=self.repositories_dir / name,
            compose_path=compose_path,
        )

    def prepare(self, definition: ProjectFile, paths: ProjectPaths) -> None:
        """Create both project directories and write the manifest."""
        try:
            paths.manifest_dir.mkdir(parents=True, exist_ok=True)
            paths.repository_dir.mkdir(parents=True, exist_ok=True)
            write_manifest(paths.manifest_file, definition)
        except OSError as exc:
            raise CreateProjectFailed(definition.name, str(exc)) from exc

    def manifest_files(self) -> list[Path]:
        if not self.projects_dir.is_dir():
            return []
        files = {
            path
            for pattern in MANIFEST_PATTERNS
            for path in self.projects_dir.rglob(pattern)
            if path.is_file()
        }
        return sorted(files)

    def discover(self) -> list[ProjectFile]:
        """Load every manifest; any unreadable manifest fails the whole scan."""
        return [load_manifest(path) for path in self.manifest_files()]

    def find(self, name: str) -> ProjectFile | None:
        manifest_file = self.paths_for(name).manifest_file
        if not manifest_file.is_file():
            return None
        return load_manifest(manifest_file)


def dump_manifest(definition: ProjectFile) -> str:
    data = {
        "name": str(definition.name),
        "source": {
            "url": definition.source.url,
            "branch": definition.source.branch,
            "path": definition.source.path,
        },
    }
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


def parse_manifest(content: str) -> ProjectFile:
    return ProjectFile.model_validate(yaml.safe_load(content))


def write_manifest(path: Path, definition: ProjectFile) -> None:
    temp_path = path.with_suffix(".yaml.tmp")
    temp_path.write_text(dump_manifest(definition), encoding="utf-8")
    temp_path.replace(path)


def load_manifest(path: Path) -> ProjectFile:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ListProjectsFailed(f"cannot read {path}: {exc}") from exc
    try:
        return parse_manifest(content)
    except yaml.YAMLError as exc:
        raise ListProjectsFailed(f"invalid YAML in {path}: {exc}") from exc
    except ValidationError as exc:
        raise ListProjectsFailed(f"invalid project definition in {path}: {exc}") from exc
