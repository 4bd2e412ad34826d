"""Shared API dependency providers."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from pathlib import Path

from stackyard.config import DEFAULT_CONFIG_PATH, Settings, load_settings
from stackyard.core.project_manager import ProjectManager
from stackyard.core.provisioning import ProvisioningTracker

CONFIG_PATH_ENV = "STACKYARD_CONFIG"


@lru_cache
def get_settings() -> Settings:
    return load_settings(Path(os.environ.get(CONFIG_PATH_ENV, str(DEFAULT_CONFIG_PATH))))


@lru_cache
def get_request_executor() -> ThreadPoolExecutor:
    """Pool for blocking git/docker calls made while serving requests."""
    settings = get_settings()
    return ThreadPoolExecutor(
        max_workers=settings.workers.request_threads,
        thread_name_prefix="stackyard-request",
    )


@lru_cache
def get_provisioning_executor() -> ThreadPoolExecutor:
    settings = get_settings()
    return ThreadPoolExecutor(
        max_workers=settings.workers.provisioning_threads,
        thread_name_prefix="stackyard-provision",
    )


@lru_cache
def get_project_manager() -> ProjectManager:
    settings = get_settings()
    return ProjectManager(
        settings.workspace,
        tracker=ProvisioningTracker(get_provisioning_executor()),
    )


def shutdown_executors() -> None:
    get_project_manager.cache_clear()
    for provider in (get_request_executor, get_provisioning_executor):
        if provider.cache_info().currsize:
            provider().shutdown(wait=False)
            provider.cache_clear()
