"""Global exception handlers for FastAPI.

translate_exception maps lower-level failures (store, cache, token, schema)
onto the operational taxonomy in api.exceptions. Anything it does not
recognize is non-operational: logged with its traceback and answered with a
generic 500, with detail only when running in development.
"""

import logging

import psycopg2
import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from api.exceptions import (
    ApiError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    ServiceUnavailableError,
    UnauthorizedError,
    UnprocessableEntityError,
)
from auth.exceptions import (
    AuthError,
    DuplicateKeyError,
    ExpiredTokenError,
    InvalidIdentifierError,
    InvalidTokenError,
    NotYetValidError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = (
    "Something went very wrong! Our team has been notified, and we are working to fix this issue."
)


def translate_exception(exc: Exception) -> ApiError | None:
    """Map a known lower-level exception to an ApiError, or None if unrecognized."""
    if isinstance(exc, ApiError):
        return exc

    if isinstance(exc, InvalidIdentifierError):
        return BadRequestError(
            f'Invalid input provided for the {exc.field} field: "{exc.value}". '
            "Please provide a valid value and try again."
        )

    if isinstance(exc, DuplicateKeyError):
        return ConflictError(
            f'The value "{exc.value}" already exists. Duplicate entries are not allowed. '
            "Please choose a different value and try again."
        )

    if isinstance(exc, RequestValidationError):
        messages = [error.get("msg", "Invalid value") for error in exc.errors()]
        return UnprocessableEntityError(
            f"There were validation errors in your input. {'. '.join(messages)}. "
            "Please correct them and try again."
        )

    if isinstance(exc, ExpiredTokenError):
        return UnauthorizedError(
            "Your session has expired. Please log in again to continue.",
            code=ErrorCodes.TOKEN_EXPIRED,
        )

    if isinstance(exc, NotYetValidError):
        return UnauthorizedError(
            "This token is not yet active. Please check the token activation time and try again.",
            code=ErrorCodes.TOKEN_NOT_ACTIVE,
        )

    if isinstance(exc, InvalidTokenError):
        return UnauthorizedError(
            "Your session is invalid or has been tampered with. Please log in again to continue.",
            code=ErrorCodes.INVALID_TOKEN,
        )

    if isinstance(exc, (psycopg2.OperationalError, psycopg2.InterfaceError)):
        return ServiceUnavailableError("Lost connection to the database. Please try again later.")

    if isinstance(exc, (redis.ConnectionError, redis.TimeoutError)):
        return ServiceUnavailableError("Lost connection to the session store. Please try again later.")

    return None


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _api_error_response(request: Request, error: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error_response(error.code, error.message, _request_id(request)).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI, expose_details: bool = False) -> None:
    """Register global exception handlers on the app.

    Args:
        app: Application to configure
        expose_details: Include exception type and message for
            non-operational errors (development only)
    """

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}")
        return _api_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _api_error_response(request, translate_exception(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            error = NotFoundError(f"Can't find {request.url.path} on this server!")
        else:
            error = ApiError(str(exc.detail))
            error.status_code = exc.status_code
            error.code = ErrorCodes.BAD_REQUEST if exc.status_code < 500 else ErrorCodes.INTERNAL_ERROR
        return _api_error_response(request, error)

    def non_operational_response(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception", exc_info=exc)
        message = f"{exc.__class__.__name__}: {exc}" if expose_details else GENERIC_ERROR_MESSAGE
        return JSONResponse(
            status_code=500,
            content=error_response(ErrorCodes.INTERNAL_ERROR, message, _request_id(request)).model_dump(mode="json"),
        )

    # Store, cache and token failures get their own handler so they are
    # answered inside the app instead of escaping to ServerErrorMiddleware.
    async def translated_error_handler(request: Request, exc: Exception):
        translated = translate_exception(exc)
        if translated is None:
            return non_operational_response(request, exc)
        if translated.status_code >= 500:
            logger.error(f"{exc.__class__.__name__} translated to {translated.status_code}: {exc}")
        return _api_error_response(request, translated)

    for exc_class in (AuthError, psycopg2.Error, redis.RedisError):
        app.add_exception_handler(exc_class, translated_error_handler)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        return non_operational_response(request, exc)
