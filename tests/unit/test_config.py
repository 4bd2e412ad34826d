from __future__ import annotations

from pathlib import Path

import pytest

from stackyard.config import Settings, load_settings
from stackyard.core.errors import ConfigError


def test_load_settings_reads_yaml_sections(tmp_path: Path) -> None:
    config = tmp_path / "default.yaml"
    config.write_text(
        "server:\n"
        "  host: 127.0.0.1\n"
        "  port: 9000\n"
        "workspace:\n"
        "  projects_dir: /tmp/projects\n"
        "  repositories_dir: /tmp/repos\n",
        encoding="utf-8",
    )

    settings = load_settings(config)

    assert settings.server.host == "127.0.0.1"
    assert settings.server.port == 9000
    assert settings.workspace.projects_dir == Path("/tmp/projects")
    assert settings.workspace.repositories_dir == Path("/tmp/repos")
    assert settings.workspace.isolate_project_failures is False
    assert settings.workers.request_threads == 4


def test_missing_config_file_uses_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "absent.yaml")
    assert settings == Settings()


def test_environment_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "default.yaml"
    config.write_text(
        "workspace:\n  projects_dir: /from/file\n  repositories_dir: /repos\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("STACKYARD_WORKSPACE__PROJECTS_DIR", "/from/env")

    settings = load_settings(config)

    assert settings.workspace.projects_dir == Path("/from/env")
    assert settings.workspace.repositories_dir == Path("/repos")


@pytest.mark.parametrize("content", ["not: valid: yaml", "- a\n- b\n", "server:\n  port: nope\n"])
def test_invalid_config_raises(tmp_path: Path, content: str) -> None:
    config = tmp_path / "default.yaml"
    config.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_settings(config)

    assert excinfo.value.code == "C100"


def test_log_level_is_normalized(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STACKYARD_LOG_LEVEL", "debug")
    assert load_settings(tmp_path / "absent.yaml").log_level == "DEBUG"


def test_unknown_log_level_is_rejected(tmp_path: Path) -> None:
    config = tmp_path / "default.yaml"
    config.write_text("log_level: verbose\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_settings(config)
