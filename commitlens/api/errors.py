"""Exception → JSON response mapping.

Every error body is ``{"detail": "<message>"}``.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from commitlens.engines.weighting import UnsupportedGroupBy
from commitlens.services import ConflictError, NotFoundError, ServiceError, ValidationError

log = structlog.get_logger("commitlens.api")

# InvalidFilter and InvalidWeight resolve through ValidationError
_STATUS_MAP: dict[type[ServiceError], int] = {
    NotFoundError: 404,
    ConflictError: 409,
    ValidationError: 422,
}


def _status_for(exc: ServiceError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_MAP:
            return _STATUS_MAP[cls]
    return 500


def _detail(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"detail": message})


async def _service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    return _detail(_status_for(exc), str(exc))


async def _request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = [
        f"{' → '.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    ]
    return _detail(422, "; ".join(messages))


async def _unsupported_group_by_handler(
    request: Request, exc: UnsupportedGroupBy
) -> JSONResponse:
    # reaching here means a route accepted a dimension the engine lacks
    log.error("api.unsupported_group_by", path=request.url.path, error=str(exc))
    return _detail(500, str(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, _request_validation_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        UnsupportedGroupBy, _unsupported_group_by_handler  # type: ignore[arg-type]
    )
