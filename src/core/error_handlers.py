"""Application-level exception handlers.

Every error leaves the API in the same envelope as a success:
``{"success": false, "message": ...}``.
"""

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import (
    AttemptLimitExceededError,
    EcoterraError,
    InvalidCredentialsError,
    NotFoundError,
    PermissionDeniedError,
    UserAlreadyExistsError,
    ValidationError,
)
from schemas.common import envelope

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (InvalidCredentialsError, status.HTTP_401_UNAUTHORIZED),
    (AttemptLimitExceededError, status.HTTP_400_BAD_REQUEST),
    (UserAlreadyExistsError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
)


def to_http_exception(error: EcoterraError) -> HTTPException:
    """Translate a manager exception into the matching HTTP error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST, detail=str(error)
    )


def _validation_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return errors


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(str(exc.detail), success=False),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = _validation_errors(exc)
    logger.debug("Rejected %s %s: %s", request.method, request.url.path, errors)
    message = errors[0]["message"] if len(errors) == 1 else "Validation failed"
    body: Dict[str, Any] = envelope(message, data=errors, success=False)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


async def ecoterra_exception_handler(request: Request, exc: EcoterraError) -> JSONResponse:
    http_exc = to_http_exception(exc)
    return JSONResponse(
        status_code=http_exc.status_code,
        content=envelope(http_exc.detail, success=False),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=envelope("Internal server error", success=False),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(EcoterraError, ecoterra_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
