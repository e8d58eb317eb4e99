"""Shared router dependencies and error translation."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, NoReturn

from fastapi import HTTPException, Request

from container import AppContainer
from services.errors import (
    ConstraintViolation,
    FileAreaError,
    InvalidImportFormat,
    ModeUnavailable,
    NetworkError,
    NoOfflineHandler,
    NotInitialized,
    PlannerError,
    StoreInitError,
    UnsupportedMedia,
)

ERROR_STATUS_CODES = (
    (ConstraintViolation, 409),
    (ModeUnavailable, 409),
    (InvalidImportFormat, 422),
    (UnsupportedMedia, 422),
    (FileAreaError, 500),
    (StoreInitError, 503),
    (NotInitialized, 503),
    (NoOfflineHandler, 503),
    (NetworkError, 503),
)


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def http_error(exc: PlannerError) -> HTTPException:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


@contextmanager
def planner_errors() -> Iterator[None]:
    try:
        yield
    except PlannerError as exc:
        raise http_error(exc) from exc


def not_found(entity: str, entity_id: Any) -> NoReturn:
    raise HTTPException(status_code=404, detail=f"{entity} {entity_id} not found")


async def dispatch(container: AppContainer, operation: str, *args: Any, **kwargs: Any) -> Any:
    """Run a planner operation through the mode controller."""
    with planner_errors():
        return await container.mode.execute(operation, *args, **kwargs)
