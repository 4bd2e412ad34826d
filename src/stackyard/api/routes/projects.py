"""Project routes."""

from __future__ import annotations

from concurrent.futures import Executor

from fastapi import APIRouter, Depends, status

from stackyard.api.deps import get_project_manager, get_request_executor
from stackyard.api.routes.common import run_blocking
from stackyard.api.schemas.projects import (
    CreateProjectRequest,
    CreateProjectResponse,
    ProjectActionResponse,
    ProjectsResponse,
    ProvisioningResponse,
)
from stackyard.core.errors import ProjectNotFound
from stackyard.core.project_manager import ProjectManager, build_definition

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=ProjectsResponse)
async def list_projects(
    manager: ProjectManager = Depends(get_project_manager),
    executor: Executor = Depends(get_request_executor),
) -> ProjectsResponse:
    return ProjectsResponse(items=await run_blocking(executor, manager.list_projects))


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def create_project(
    request: CreateProjectRequest,
    manager: ProjectManager = Depends(get_project_manager),
    executor: Executor = Depends(get_request_executor),
) -> CreateProjectResponse:
    definition = build_definition(request.name, request.source)
    record = await run_blocking(executor, manager.create_project, definition)
    return CreateProjectResponse(name=record.project_name, phase=record.phase)


@router.get("/{name}/provisioning")
async def get_provisioning(
    name: str,
    manager: ProjectManager = Depends(get_project_manager),
) -> ProvisioningResponse:
    record = manager.provisioning(name)
    if record is None:
        raise ProjectNotFound(name, "no provisioning run")
    return ProvisioningResponse.from_record(record)


@router.post("/{name}/stop")
async def stop_project(
    name: str,
    manager: ProjectManager = Depends(get_project_manager),
    executor: Executor = Depends(get_request_executor),
) -> ProjectActionResponse:
    await run_blocking(executor, manager.stop_project, name)
    return ProjectActionResponse(name=name)


@router.post("/{name}/sync")
async def sync_project(
    name: str,
    manager: ProjectManager = Depends(get_project_manager),
    executor: Executor = Depends(get_request_executor),
) -> ProjectActionResponse:
    await run_blocking(executor, manager.sync_project, name)
    return ProjectActionResponse(name=name)
