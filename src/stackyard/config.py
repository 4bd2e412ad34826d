"""Configuration management for stackyard."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stackyard.core.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("config/default.yaml")

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080


class WorkspaceSettings(BaseModel):
    """Roots of the managed workspace."""

    projects_dir: Path = Path("resources/projects")
    repositories_dir: Path = Path("resources/repositories")
    # Report per-project collaborator failures as DeploymentFailed instead of failing the listing.
    isolate_project_failures: bool = False


class WorkerSettings(BaseModel):
    request_threads: int = Field(default=4, ge=1)
    provisioning_threads: int = Field(default=2, ge=1)


class Settings(BaseSettings):
    """Application settings loaded from a YAML file and environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="STACKYARD_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: LogLevel = "INFO"
    server: ServerSettings = Field(default_factory=ServerSettings)
    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)
    workers: WorkerSettings = Field(default_factory=WorkerSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


def read_config_file(path: Path) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def load_settings(path: Path = DEFAULT_CONFIG_PATH) -> Settings:
    """Build settings from `path`, with environment variables taking precedence."""
    data = read_config_file(Path(path))
    try:
        file_settings = Settings.model_validate(data) if data else None
        env_settings = Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    if file_settings is None:
        return env_settings
    return _merge(file_settings, env_settings)


def _merge(file_settings: Settings, env_settings: Settings) -> Settings:
    merged = file_settings.model_dump()
    overrides = env_settings.model_dump(exclude_unset=True)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return Settings.model_validate(merged)
