"""Compose container snapshot models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ContainerState(str, Enum):
    """Container state tokens reported by `docker compose ps`."""

    CREATED = "created"
    DEAD = "dead"
    EXITED = "exited"
    PAUSED = "paused"
    REMOVING = "removing"
    RESTARTING = "restarting"
    RUNNING = "running"


class Container(BaseModel):
    """One compose service instance at the time it was queried."""

    model_config = ConfigDict(frozen=True)

    name: str
    state: ContainerState
