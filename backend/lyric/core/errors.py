"""
Error taxonomy and JSON error envelopes.

Services raise AppError (or let unexpected exceptions escape); the handlers
registered here turn them into the response envelopes used by every endpoint:

    4xx validation  -> {"errors": {"<field>": "<message>", ...}}
    other 4xx       -> {"errors": {"message": "<message>"}}
    5xx             -> {"errors": {"message": "an unexpected internal error occurred"}}
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "an unexpected internal error occurred"


class AppError(Exception):
    """
    Error carrying an HTTP status, a client-safe message and optional field details.

    The wrapped cause (if any) is kept as __cause__ for logging and is never
    rendered to the client.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        details: Optional[dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        return f"AppError(status_code={self.status_code!r}, message={self.message!r})"

    @classmethod
    def validation(cls, details: dict[str, str]) -> "AppError":
        return cls(status.HTTP_422_UNPROCESSABLE_ENTITY, "validation failed", dict(details))

    @classmethod
    def bad_request(cls, message: str) -> "AppError":
        return cls(status.HTTP_400_BAD_REQUEST, message)

    @classmethod
    def unauthorized(cls, message: str = "unauthorized") -> "AppError":
        return cls(status.HTTP_401_UNAUTHORIZED, message)

    @classmethod
    def forbidden(cls, message: str) -> "AppError":
        return cls(status.HTTP_403_FORBIDDEN, message)

    @classmethod
    def not_found(cls, message: str) -> "AppError":
        return cls(status.HTTP_404_NOT_FOUND, message)

    @classmethod
    def internal(
        cls,
        cause: Optional[BaseException] = None,
        message: str = INTERNAL_ERROR_MESSAGE,
    ) -> "AppError":
        error = cls(status.HTTP_500_INTERNAL_SERVER_ERROR, message)
        error.__cause__ = cause
        return error

    @property
    def is_validation(self) -> bool:
        return self.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY and bool(self.details)


class ValidationErrors:
    """
    Collects per-field validation messages so a request reports every problem at once.

    Example:
        >>> errors = ValidationErrors()
        >>> errors.add("page", "must be a positive integer")
        >>> errors.raise_if_any()
        Traceback (most recent call last):
        ...
        AppError: validation failed
    """

    def __init__(self) -> None:
        self.fields: dict[str, str] = {}

    def add(self, field: str, message: str) -> None:
        # First message per field wins.
        self.fields.setdefault(field, message)

    @property
    def has_errors(self) -> bool:
        return bool(self.fields)

    def raise_if_any(self) -> None:
        if self.fields:
            raise AppError.validation(self.fields)


def error_body(error: AppError) -> dict:
    """Render the JSON envelope for an AppError."""
    if error.is_validation:
        return {"errors": dict(error.details)}
    return {"errors": {"message": error.message}}


# =============================================================================
# Exception handlers
# =============================================================================


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "internal error on %s %s: %r",
            request.method,
            request.url.path,
            exc.__cause__ or exc,
            exc_info=exc.__cause__ or exc,
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Map FastAPI request validation failures onto the error envelope.

    Body decode problems (malformed JSON, wrong types, unknown fields) are a
    400 "invalid JSON payload"; anything else reports the offending fields.
    """
    fields: dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        if loc and loc[0] == "body":
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"errors": {"message": "invalid JSON payload"}},
            )
        field = str(loc[-1]) if loc else "message"
        fields.setdefault(field, err.get("msg", "invalid value"))

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"errors": fields or {"message": "invalid request"}},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"errors": {"message": message.lower() if exc.status_code == 404 else message}},
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error envelope handlers on the application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
