"""
Async error handling utilities for service and database operations.

This module classifies storage failures into the caller-facing
``DatabaseError`` shape and provides the decorator every public service
method uses to guarantee it only ever raises a ``ServerError``.
"""

import re
from functools import wraps
from typing import Any, Callable, Dict, Optional

import asyncpg
from fastapi import status
from sqlalchemy.exc import (
    DataError,
    DBAPIError,
    IntegrityError,
    NoResultFound,
    SQLAlchemyError,
    StatementError,
)

from app.core.enums import StorageErrorType
from app.core.errors import (
    APIError,
    CastErrorDetails,
    DatabaseError,
    DocumentValidationError,
    DuplicateKeyDetails,
    IdentifierCastError,
    ServerError,
    StorageError,
    ValidationErrorDetails,
)

# Key (email)=(someone@example.com) already exists.
_PG_DUPLICATE_KEY = re.compile(r"Key \((?P<columns>[^)]*)\)=\((?P<values>.*?)\) already exists")
# UNIQUE constraint failed: users.email, users.username
_SQLITE_DUPLICATE_KEY = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w., ]+)")

UNIQUE_VIOLATION_SQLSTATE = "23505"

STORAGE_ERRORS = (StorageError, SQLAlchemyError, asyncpg.PostgresError)


class AsyncErrorHandler:
    """
    Translates storage-layer exceptions into ``DatabaseError``.

    Mapping:
      - document validation failure -> 400 with per-field errors
      - identifier cast / data format failure -> 400 with field and value
      - missing row on a ``scalar_one`` lookup -> 404
      - unique constraint violation -> 409 with the colliding key
      - any other driver failure -> 503
      - anything unrecognised -> 500
    """

    @classmethod
    def translate(cls, error: Exception) -> DatabaseError:
        if isinstance(error, DocumentValidationError):
            return DatabaseError(
                "Validation failed",
                StorageErrorType.ValidationError.value,
                status.HTTP_400_BAD_REQUEST,
                ValidationErrorDetails(errors=error.errors),
            )

        if isinstance(error, IdentifierCastError):
            return cls._cast_error(error.field, error.value)

        if isinstance(error, NoResultFound):
            return DatabaseError(
                "Resource not found",
                StorageErrorType.DocumentNotFoundError.value,
                status.HTTP_404_NOT_FOUND,
            )

        if isinstance(error, IntegrityError):
            if cls.is_unique_violation(error):
                return cls._duplicate_key_error(str(error.orig))
            return cls._server_error()

        if isinstance(error, DataError):
            return cls._cast_error(None, cls._first_param(error))

        if isinstance(error, DBAPIError):
            return cls._server_error()

        if isinstance(error, StatementError):
            # Raised while binding parameters, before the driver is reached
            return cls._cast_error(None, cls._first_param(error))

        if isinstance(error, asyncpg.PostgresError):
            return cls._handle_postgres_error(error)

        if isinstance(error, SQLAlchemyError):
            return cls._server_error()

        return DatabaseError(
            "Unknown database error occurred",
            "UNKNOWN_DATABASE_ERROR",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @classmethod
    def _handle_postgres_error(cls, error: asyncpg.PostgresError) -> DatabaseError:
        """Classify an asyncpg error that escaped SQLAlchemy's wrapping."""
        if isinstance(error, asyncpg.UniqueViolationError):
            return cls._duplicate_key_error(getattr(error, "detail", None) or str(error))
        if isinstance(error, asyncpg.DataError):
            return cls._cast_error(None, None)
        return cls._server_error()

    @staticmethod
    def is_unique_violation(error: IntegrityError) -> bool:
        orig = error.orig
        if getattr(orig, "sqlstate", None) == UNIQUE_VIOLATION_SQLSTATE:
            return True
        if isinstance(getattr(orig, "__cause__", None), asyncpg.UniqueViolationError):
            return True
        return "UNIQUE constraint failed" in str(orig) or "duplicate key value" in str(orig)

    @staticmethod
    def parse_duplicate_key(message: str) -> Dict[str, Any]:
        match = _PG_DUPLICATE_KEY.search(message)
        if match:
            columns = [c.strip() for c in match.group("columns").split(",")]
            values = [v.strip() for v in match.group("values").split(",")]
            if len(columns) == len(values):
                return dict(zip(columns, values))
            return {", ".join(columns): match.group("values")}

        match = _SQLITE_DUPLICATE_KEY.search(message)
        if match:
            columns = [c.strip().split(".")[-1] for c in match.group("columns").split(",")]
            return {column: None for column in columns}

        return {}

    @classmethod
    def _duplicate_key_error(cls, message: str) -> DatabaseError:
        return DatabaseError(
            "Duplicate entry",
            StorageErrorType.DuplicateKeyError.value,
            status.HTTP_409_CONFLICT,
            DuplicateKeyDetails(key=cls.parse_duplicate_key(message)),
        )

    @staticmethod
    def _cast_error(field: Optional[str], value: Any) -> DatabaseError:
        return DatabaseError(
            "Invalid data format",
            StorageErrorType.CastError.value,
            status.HTTP_400_BAD_REQUEST,
            CastErrorDetails(field=field, value=value),
        )

    @staticmethod
    def _server_error() -> DatabaseError:
        return DatabaseError(
            "Database operation failed",
            StorageErrorType.DatabaseServerError.value,
            status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @staticmethod
    def _first_param(error: StatementError) -> Any:
        params = error.params
        if isinstance(params, dict) and params:
            return str(next(iter(params.values())))
        return None


def classify_error(error: Exception, failure_message: str) -> ServerError:
    """Return the ``ServerError`` a caller should see for ``error``."""
    if isinstance(error, ServerError):
        return error
    if isinstance(error, STORAGE_ERRORS):
        return AsyncErrorHandler.translate(error)
    return APIError.internal_server_error(failure_message)


def handle_service_errors(operation_name: str, failure_message: str = "An unexpected error occurred"):
    """
    Decorator for public service methods.

    ``ServerError`` subclasses pass through, storage failures are translated
    and anything else becomes a 500 carrying ``failure_message``. The wrapped
    method's instance must expose a ``logger``.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except Exception as e:
                classified = classify_error(e, failure_message)
                if classified is e:
                    self.logger.warning(
                        f"{operation_name} rejected",
                        status_code=e.status_code,
                        error_code=e.error_code,
                        reason=e.message,
                    )
                    raise
                self.logger.error(
                    f"{operation_name} failed",
                    status_code=classified.status_code,
                    error_code=classified.error_code,
                    error=repr(e),
                )
                raise classified from e
        return wrapper
    return decorator
