"""External command execution capability."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CommandResult:
    """Captured outcome of one external command."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def failure_reason(self) -> str:
        """Best available explanation for a failed command."""
        reason = self.stderr.strip() or self.stdout.strip()
        return reason or f"{self.command} exited with status {self.returncode}"


class CommandRunner(Protocol):
    """Run a command and capture its output.

    Implementations raise `OSError` when the command cannot be started.
    """

    def run(self, args: Sequence[str], cwd: Path | None = None) -> CommandResult: ...


class SubprocessRunner:
    """Run commands with `subprocess.run`, blocking until they exit."""

    def run(self, args: Sequence[str], cwd: Path | None = None) -> CommandResult:
        command = " ".join(args)
        logger.debug("Running %s (cwd=%s)", command, cwd)
        completed = subprocess.run(
            [*args],
            cwd=cwd,
            check=False,
            capture_output=True,
            text=True,
        )
        return CommandResult(
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
