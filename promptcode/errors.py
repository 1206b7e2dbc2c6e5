"""
Error taxonomy.

Every failure a request can hit is one of these; the exception handlers in
``promptcode.main`` turn them into the ``{success: false, error}`` envelope.
"""

from typing import Any


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInput(AppError):
    """The request body failed validation."""

    status_code = 400
    code = "INVALID_INPUT"


class GenerationError(AppError):
    """The generative upstream failed or returned unusable content."""

    code = "GENERATION_ERROR"


class StorageError(AppError):
    """Reading or writing the temp file store failed."""

    code = "STORAGE_ERROR"


class ExecutionError(AppError):
    """Transport failure talking to the execution upstream.

    A program that ran and exited nonzero is *not* an ExecutionError.
    """

    code = "EXECUTION_ERROR"


class UnsupportedLanguage(ExecutionError):
    code = "UNSUPPORTED_LANGUAGE"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"


class RateLimited(AppError):
    status_code = 429
    code = "RATE_LIMITED"

    def __init__(self, message: str, retry_after: int | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class InternalError(AppError):
    """Anything unexpected; the message never carries internal detail."""

    code = "INTERNAL_ERROR"
