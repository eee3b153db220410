"""HTTP-shaped error taxonomy shared by services and routes.

Every error a caller may see carries a stable status code and a
human-readable message. Anything that is not an :class:`ApiError` is
rendered as a generic internal error; its cause is only logged.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_SERVER_ERROR_MESSAGE = "internal server error"


class ApiError(Exception):
    """Base error carrying the status code and message rendered to clients."""

    code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, object]:
        return {"code": self.code, "message": self.message}


class BadRequestError(ApiError):
    code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(f"bad request: {message}")


class UnauthorizedError(ApiError):
    code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "unauthorized") -> None:
        super().__init__(message)


class ForbiddenError(ApiError):
    code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "forbidden") -> None:
        super().__init__(message)


class NotFoundError(ApiError):
    code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "") -> None:
        message = f"{resource} not found" if resource else "not found"
        super().__init__(message)
        self.resource = resource


class ConflictError(ApiError):
    code = status.HTTP_409_CONFLICT

    def __init__(self, message: str) -> None:
        super().__init__(f"conflict: {message}")


class ServiceUnavailableError(ApiError):
    code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "service unavailable") -> None:
        super().__init__(message)


def _render(error: ApiError) -> JSONResponse:
    return JSONResponse(status_code=error.code, content=error.to_dict())


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return _render(exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.status_code, "message": message.lower()},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_validation_failed path=%s errors=%s", request.url.path, exc.errors())
    return _render(BadRequestError("invalid request body"))


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error method=%s path=%s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"code": status.HTTP_500_INTERNAL_SERVER_ERROR, "message": INTERNAL_SERVER_ERROR_MESSAGE},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)
