"""Application error taxonomy and the FastAPI handlers that render it.

Handlers never return backend detail (storage locators, driver messages,
credentials): 5xx and conflict responses carry a fixed message and the real
cause is logged for operators.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class UnauthenticatedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Not authenticated"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"


class InvalidInputError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid input"

    def __init__(self, detail: Optional[str] = None, field: Optional[str] = None):
        super().__init__(detail)
        self.field = field


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Resource already exists"


class StorageUnavailableError(AppError):
    """The storage backend is unreachable or misconfigured."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Storage service unavailable"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    body = {"detail": exc.detail}
    headers = None

    if isinstance(exc, InvalidInputError) and exc.field:
        body["field"] = exc.field
    elif isinstance(exc, UnauthenticatedError):
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(exc, StorageUnavailableError):
        # the message may name a bucket or a path: keep it in the logs only
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        body = {"detail": StorageUnavailableError.detail}

    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": ConflictError.detail},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": AppError.detail},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
