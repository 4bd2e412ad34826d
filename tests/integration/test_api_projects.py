from __future__ import annotations

from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from stackyard.api.app import create_app
from stackyard.api.deps import get_project_manager, get_request_executor
from stackyard.config import WorkspaceSettings
from stackyard.core.compose_manager import ComposeManager
from stackyard.core.git_manager import GitManager
from stackyard.core.project_manager import ProjectManager
from stackyard.core.provisioning import ProvisioningTracker
from tests.support.fakes import DeferredExecutor, FakeRunner, ps_line

PAYLOAD = {
    "name": "foo",
    "source": {"url": "https://example.com/foo.git", "branch": "main", "path": "compose.yml"},
}


class _Api:
    def __init__(self, tmp_path: Path, runner: FakeRunner) -> None:
        self.tmp_path = tmp_path
        self.runner = runner
        self.provisioning = DeferredExecutor()
        self.manager = ProjectManager(
            WorkspaceSettings(
                projects_dir=tmp_path / "projects",
                repositories_dir=tmp_path / "repositories",
            ),
            compose=ComposeManager(runner),
            git=GitManager(runner),
            tracker=ProvisioningTracker(self.provisioning),
        )
        self.request_executor = ThreadPoolExecutor(max_workers=1)
        app = create_app()
        app.dependency_overrides[get_project_manager] = lambda: self.manager
        app.dependency_overrides[get_request_executor] = lambda: self.request_executor
        self.client = TestClient(app)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def api(tmp_path: Path, runner: FakeRunner) -> Iterator[_Api]:
    harness = _Api(tmp_path, runner)
    yield harness
    harness.request_executor.shutdown(wait=True)


def _write_compose_on_clone(args: Sequence[str], cwd: Path | None) -> None:
    del cwd
    destination = Path(args[-1])
    destination.mkdir(parents=True, exist_ok=True)
    (destination / ".git").mkdir(exist_ok=True)
    (destination / "compose.yml").write_text("services: {}\n", encoding="utf-8")


def test_create_then_list_project(api: _Api, runner: FakeRunner) -> None:
    runner.on("clone", effect=_write_compose_on_clone)
    runner.on("ps", stdout=f"{ps_line('web', 'running')}\n{ps_line('db', 'running')}\n")
    runner.on("log", stdout="1700000000\n")

    created = api.client.post("/projects", json=PAYLOAD)
    assert created.status_code == 202
    assert created.json() == {"name": "foo", "phase": "pending"}

    in_progress = api.client.get("/projects")
    assert in_progress.status_code == 200
    assert in_progress.json()["items"][0]["status"]["kind"] == "creation_in_progress"

    api.provisioning.run_all()

    provisioning = api.client.get("/projects/foo/provisioning")
    assert provisioning.status_code == 200
    assert provisioning.json()["phase"] == "succeeded"

    listing = api.client.get("/projects")
    assert listing.status_code == 200
    [item] = listing.json()["items"]
    assert item["name"] == "foo"
    assert item["source"] == PAYLOAD["source"]
    assert item["status"]["kind"] == "running"
    assert item["status"]["active"] == 2
    assert item["status"]["total"] == 2
    assert item["status"]["display"] == "Running (2/2)"
    assert item["last_updated_at"].startswith("2023-11-14T22:13:20")


def test_create_rejects_invalid_name(api: _Api) -> None:
    response = api.client.post("/projects", json={**PAYLOAD, "name": "a/b"})

    assert response.status_code == 422
    assert response.json()["code"] == "P100"


def test_create_rejects_empty_branch(api: _Api) -> None:
    payload = {"name": "foo", "source": {**PAYLOAD["source"], "branch": ""}}

    response = api.client.post("/projects", json=payload)

    assert response.status_code == 422
    assert response.json()["code"] == "P100"
    assert "branch" in response.json()["detail"]


def test_create_rejects_escaping_compose_path(api: _Api) -> None:
    payload = {"name": "foo", "source": {**PAYLOAD["source"], "path": "/etc/compose.yml"}}

    response = api.client.post("/projects", json=payload)

    assert response.status_code == 422
    assert response.json()["code"] == "P102"


def test_provisioning_failure_is_visible(api: _Api, runner: FakeRunner) -> None:
    runner.on("clone", returncode=128, stderr="fatal: repository not found")

    assert api.client.post("/projects", json=PAYLOAD).status_code == 202
    api.provisioning.run_all()

    provisioning = api.client.get("/projects/foo/provisioning").json()
    assert provisioning["phase"] == "failed"
    assert provisioning["error_code"] == "G100"

    [item] = api.client.get("/projects").json()["items"]
    assert item["status"]["kind"] == "deployment_failed"
    assert item["last_updated_at"] is None


def test_provisioning_unknown_project(api: _Api) -> None:
    response = api.client.get("/projects/ghost/provisioning")

    assert response.status_code == 404
    assert response.json()["code"] == "P104"
    assert response.json()["title"] == "Not Found"


def test_manifest_with_absolute_compose_path_fails_listing(api: _Api, tmp_path: Path) -> None:
    manifest_dir = tmp_path / "projects" / "foo"
    manifest_dir.mkdir(parents=True)
    (manifest_dir / "project.yaml").write_text(
        "name: foo\nsource:\n  url: https://example.com/foo.git\n  branch: main\n"
        "  path: /etc/compose.yml\n",
        encoding="utf-8",
    )

    response = api.client.get("/projects")

    assert response.status_code == 500
    assert response.json()["code"] == "P101"


def test_list_failure_maps_to_problem(api: _Api, tmp_path: Path) -> None:
    broken = tmp_path / "projects" / "broken"
    broken.mkdir(parents=True)
    (broken / "project.yaml").write_text("name: [", encoding="utf-8")

    response = api.client.get("/projects")

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "P101"
    assert body["title"] == "Internal Server Error"


def test_stop_and_sync(api: _Api, runner: FakeRunner, tmp_path: Path) -> None:
    runner.on("clone", effect=_write_compose_on_clone)
    api.client.post("/projects", json=PAYLOAD)
    api.provisioning.run_all()

    stopped = api.client.post("/projects/foo/stop")
    assert stopped.status_code == 200
    assert stopped.json() == {"name": "foo", "result": "ok"}

    synced = api.client.post("/projects/foo/sync")
    assert synced.status_code == 200
    assert runner.commands("down")
    assert runner.commands("pull")


def test_compose_failure_maps_to_bad_gateway(api: _Api, runner: FakeRunner) -> None:
    runner.on("clone", effect=_write_compose_on_clone)
    runner.on("down", returncode=1, stderr="daemon unavailable")
    api.client.post("/projects", json=PAYLOAD)
    api.provisioning.run_all()

    response = api.client.post("/projects/foo/stop")

    assert response.status_code == 502
    assert response.json()["code"] == "D101"


def test_stop_unknown_project(api: _Api) -> None:
    response = api.client.post("/projects/ghost/stop")

    assert response.status_code == 404
    assert response.json()["code"] == "P104"
