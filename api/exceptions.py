"""Operational error taxonomy.

ApiError subclasses are expected failures with a message that is safe to
show the client. Any other exception reaching the handlers is treated as
non-operational (see api.errors).
"""

from api.base import ErrorCodes


class ApiError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code = 500
    code = ErrorCodes.INTERNAL_ERROR
    is_operational = True

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class BadRequestError(ApiError):
    status_code = 400
    code = ErrorCodes.BAD_REQUEST


class UnauthorizedError(ApiError):
    status_code = 401
    code = ErrorCodes.NOT_AUTHENTICATED


class ForbiddenError(ApiError):
    status_code = 403
    code = ErrorCodes.FORBIDDEN


class NotFoundError(ApiError):
    status_code = 404
    code = ErrorCodes.NOT_FOUND


class ConflictError(ApiError):
    status_code = 409
    code = ErrorCodes.ALREADY_EXISTS


class UnprocessableEntityError(ApiError):
    status_code = 422
    code = ErrorCodes.VALIDATION_ERROR


class InternalError(ApiError):
    status_code = 500
    code = ErrorCodes.INTERNAL_ERROR


class ServiceUnavailableError(ApiError):
    status_code = 503
    code = ErrorCodes.SERVICE_UNAVAILABLE
