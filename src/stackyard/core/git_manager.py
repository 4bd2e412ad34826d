"""Git operations for project repositories."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from stackyard.core.command import CommandRunner, SubprocessRunner
from stackyard.core.errors import CloneFailed, GetLastCommitTimestampFailed, PullFailed
from stackyard.models.project import GitSource

logger = logging.getLogger(__name__)


class GitManager:
    """Thin wrapper around git CLI."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self._runner = runner or SubprocessRunner()

    def clone(self, source: GitSource, destination: Path) -> None:
        logger.info("Cloning %s (branch %s) into %s", source.url, source.branch, destination)
        args = ["git", "clone", "--branch", source.branch, source.url, str(destination)]
        try:
            result = self._runner.run(args)
        except OSError as exc:
            raise CloneFailed(source.url, str(exc)) from exc
        if not result.ok:
            raise CloneFailed(source.url, result.failure_reason())

    def pull(self, source: GitSource, destination: Path) -> None:
        """Update an existing checkout, cloning it first when missing."""
        if not destination.exists():
            self.clone(source, destination)
            return
        logger.info("Pulling latest changes in %s", destination)
        try:
            result = self._runner.run(["git", "pull"], cwd=destination)
        except OSError as exc:
            raise PullFailed(destination, str(exc)) from exc
        if not result.ok:
            raise PullFailed(destination, result.failure_reason())

    def last_commit_timestamp(self, repository: Path) -> datetime:
        try:
            result = self._runner.run(["git", "log", "-1", "--format=%ct"], cwd=repository)
        except OSError as exc:
            raise GetLastCommitTimestampFailed(repository, str(exc)) from exc
        if not result.ok:
            raise GetLastCommitTimestampFailed(repository, result.failure_reason())

        raw = result.stdout.strip()
        try:
            epoch = int(raw)
        except ValueError as exc:
            msg = f"unparsable commit timestamp {raw!r}"
            raise GetLastCommitTimestampFailed(repository, msg) from exc
        try:
            return datetime.fromtimestamp(epoch, UTC)
        except (OverflowError, OSError, ValueError) as exc:
            msg = f"commit timestamp out of range: {epoch}"
            raise GetLastCommitTimestampFailed(repository, msg) from exc
