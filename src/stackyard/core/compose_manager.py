"""Docker Compose operations for project repositories."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from stackyard.core.command import CommandResult, CommandRunner, SubprocessRunner
from stackyard.core.errors import (
    ComposeFileNotFound,
    DownFailed,
    ListContainersFailed,
    UpFailed,
)
from stackyard.models.container import Container, ContainerState

logger = logging.getLogger(__name__)

SUPPORTED_COMPOSE_FILES = (
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
)

_STATES = {state.value: state for state in ContainerState}


def find_compose_file(directory: Path) -> Path:
    """Return the first conventional compose file in `directory`.

    Falls back to `docker-compose.yml` when none exists so callers get a
    `ComposeFileNotFound` naming a concrete path.
    """
    for name in SUPPORTED_COMPOSE_FILES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return directory / SUPPORTED_COMPOSE_FILES[0]


def parse_ps_output(compose_file: Path, output: str) -> list[Container]:
    """Parse `docker compose ps --format json` output, one object per line."""
    containers: list[Container] = []
    for number, line in enumerate(output.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ListContainersFailed(compose_file, f"line {number}: invalid JSON ({exc})") from exc
        if not isinstance(payload, dict):
            raise ListContainersFailed(compose_file, f"line {number}: expected a JSON object")

        name = payload.get("Name")
        if not isinstance(name, str):
            raise ListContainersFailed(compose_file, f"line {number}: missing field 'Name'")
        state = payload.get("State")
        if not isinstance(state, str):
            raise ListContainersFailed(compose_file, f"line {number}: missing field 'State'")
        if state not in _STATES:
            raise ListContainersFailed(compose_file, f"line {number}: unknown state {state!r}")

        containers.append(Container(name=name, state=_STATES[state]))
    return containers


class ComposeManager:
    """Run `docker compose` against a specific compose file."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self._runner = runner or SubprocessRunner()

    def up(self, compose_file: Path) -> None:
        logger.info("Starting services from %s", compose_file)
        self._run(compose_file, UpFailed, "up", "-d")

    def down(self, compose_file: Path) -> None:
        logger.info("Stopping services from %s", compose_file)
        self._run(compose_file, DownFailed, "down")

    def list_containers(self, compose_file: Path) -> list[Container]:
        result = self._run(
            compose_file, ListContainersFailed, "ps", "--all", "--format", "json"
        )
        containers = parse_ps_output(compose_file, result.stdout)
        logger.debug("Found %d container(s) for %s", len(containers), compose_file)
        return containers

    def _run(
        self,
        compose_file: Path,
        failure: type[UpFailed] | type[DownFailed] | type[ListContainersFailed],
        *args: str,
    ) -> CommandResult:
        if not compose_file.is_file():
            raise ComposeFileNotFound(compose_file)
        command = ["docker", "compose", "-f", str(compose_file), *args]
        try:
            result = self._runner.run(command, cwd=compose_file.parent)
        except OSError as exc:
            raise failure(compose_file, str(exc)) from exc
        if not result.ok:
            raise failure(compose_file, result.failure_reason())
        return result
