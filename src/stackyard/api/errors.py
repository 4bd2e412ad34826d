"""Translate orchestration errors into HTTP problem responses."""

from __future__ import annotations

from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from stackyard.api.schemas.projects import ProblemResponse
from stackyard.core.errors import (
    ComposeError,
    CreateProjectFailed,
    GitError,
    InvalidPath,
    ProjectNotFound,
    StackyardError,
)


def status_for(exc: StackyardError) -> int:
    if isinstance(exc, CreateProjectFailed) and exc.client_fault:
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, InvalidPath):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, ProjectNotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ComposeError | GitError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def problem_for(exc: StackyardError) -> tuple[int, ProblemResponse]:
    status_code = status_for(exc)
    problem = ProblemResponse(
        title=HTTPStatus(status_code).phrase,
        detail=str(exc),
        code=exc.code,
    )
    return status_code, problem


async def handle_stackyard_error(request: Request, exc: StackyardError) -> JSONResponse:
    del request
    status_code, problem = problem_for(exc)
    return JSONResponse(status_code=status_code, content=problem.model_dump())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StackyardError, handle_stackyard_error)  # type: ignore[arg-type]
