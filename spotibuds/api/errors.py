"""
HTTP rendering of the error taxonomy.

Every failure becomes a JSON body with ``error`` and ``message``; 503
bodies also carry ``reason`` and ``timestamp``. Internal details are only
included when EXPOSE_ERROR_DETAILS is set.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from spotibuds.common.logging import get_logger
from spotibuds.core.errors import (
    ClientInputError,
    NotFoundError,
    RangeNotSatisfiableError,
    RequestRejectedError,
    SpotibudsError,
    UnclassifiedError,
)

logger = get_logger(__name__)


def _expose_details(request: Request) -> bool:
    services = getattr(request.app.state, "services", None)
    if services is None:
        return False
    return services.settings.expose_error_details


async def spotibuds_error_handler(request: Request, exc: SpotibudsError) -> JSONResponse:
    headers = {}
    if isinstance(exc, RangeNotSatisfiableError):
        headers["Content-Range"] = f"bytes */{exc.content_length}"
        headers["Accept-Ranges"] = "bytes"

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_details=_expose_details(request)),
        headers=headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = UnclassifiedError(
        "Internal server error",
        data={"path": request.url.path},
        cause=exc,
    )
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(include_details=_expose_details(request)),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    data = {"path": request.url.path, "method": request.method}
    if exc.status_code == 404:
        error = NotFoundError(message, data=data)
    elif exc.status_code == 400:
        error = ClientInputError(message, data=data)
    else:
        error = RequestRejectedError(message, status_code=exc.status_code, data=data)
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(include_details=_expose_details(request)),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    error = ClientInputError(
        ("Invalid request parameters: " + ", ".join(fields)) if fields else "Invalid request parameters",
        data={"path": request.url.path, "fields": fields},
    )
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(include_details=_expose_details(request)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SpotibudsError, spotibuds_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
