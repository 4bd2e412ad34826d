"""Background provisioning with retrievable outcomes."""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum

from stackyard.core.errors import StackyardError

logger = logging.getLogger(__name__)


class ProvisioningPhase(str, Enum):
    """Progress of a project's clone and compose-up."""

    PENDING = "pending"
    CLONING = "cloning"
    STARTING = "starting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


ACTIVE_PHASES = frozenset(
    {ProvisioningPhase.PENDING, ProvisioningPhase.CLONING, ProvisioningPhase.STARTING}
)


@dataclass(slots=True, frozen=True)
class ProvisioningRecord:
    """Latest known state of one provisioning run."""

    project_name: str
    phase: ProvisioningPhase
    started_at: datetime
    finished_at: datetime | None = None
    error_code: str | None = None
    error: str | None = None

    @property
    def active(self) -> bool:
        return self.phase in ACTIVE_PHASES


type ReportPhase = Callable[[ProvisioningPhase], None]
type ProvisioningWork = Callable[[ReportPhase], None]


class ProvisioningTracker:
    """Run provisioning units on an executor and remember how each one ended.

    The caller is never blocked and never sees the failure; it is logged and kept
    on the project's record so the listing can report it.
    """

    def __init__(self, executor: Executor) -> None:
        self._executor = executor
        self._lock = threading.Lock()
        self._records: dict[str, ProvisioningRecord] = {}
        self._futures: dict[str, Future[None]] = {}
        self._runs: dict[str, int] = {}
        self._run_ids = itertools.count(1)

    def submit(self, project_name: str, work: ProvisioningWork) -> ProvisioningRecord:
        record = ProvisioningRecord(
            project_name=project_name,
            phase=ProvisioningPhase.PENDING,
            started_at=datetime.now(UTC),
        )
        with self._lock:
            run_id = next(self._run_ids)
            # The worker blocks on the lock until the record below is stored.
            future = self._executor.submit(self._execute, project_name, run_id, work)
            self._runs[project_name] = run_id
            self._records[project_name] = record
            self._futures[project_name] = future
        return record

    def get(self, project_name: str) -> ProvisioningRecord | None:
        with self._lock:
            return self._records.get(project_name)

    def wait(self, project_name: str, timeout: float | None = None) -> ProvisioningRecord | None:
        """Block until the project's latest unit finishes."""
        with self._lock:
            future = self._futures.get(project_name)
        if future is not None:
            future.result(timeout=timeout)
        return self.get(project_name)

    def discard(self, project_name: str) -> None:
        """Forget a finished record so the project's live status is reported again."""
        with self._lock:
            current = self._records.get(project_name)
            if current is not None and not current.active:
                del self._records[project_name]
                self._futures.pop(project_name, None)

    def _execute(self, project_name: str, run_id: int, work: ProvisioningWork) -> None:
        def report(phase: ProvisioningPhase) -> None:
            logger.info("Provisioning %s: %s", project_name, phase.value)
            self._update(project_name, run_id, phase=phase)

        try:
            work(report)
        except StackyardError as exc:
            logger.warning("Provisioning %s failed [%s]: %s", project_name, exc.code, exc)
            self._finish(project_name, run_id, ProvisioningPhase.FAILED, exc.code, str(exc))
        except Exception as exc:
            logger.exception("Provisioning %s failed unexpectedly", project_name)
            self._finish(project_name, run_id, ProvisioningPhase.FAILED, "E000", str(exc))
        else:
            logger.info("Provisioning %s: succeeded", project_name)
            self._finish(project_name, run_id, ProvisioningPhase.SUCCEEDED, None, None)

    def _finish(
        self,
        project_name: str,
        run_id: int,
        phase: ProvisioningPhase,
        error_code: str | None,
        error: str | None,
    ) -> None:
        self._update(
            project_name,
            run_id,
            phase=phase,
            finished_at=datetime.now(UTC),
            error_code=error_code,
            error=error,
        )

    def _update(self, project_name: str, run_id: int, **changes: object) -> None:
        with self._lock:
            current = self._records.get(project_name)
            # A newer submission for the same project owns the record.
            if current is None or self._runs.get(project_name) != run_id:
                return
            self._records[project_name] = replace(current, **changes)  # type: ignore[arg-type]
