"""Error types surfaced to API callers.

Every error that leaves a service is a ``ServerError``: a status code, a short
machine-readable code and an optional structured details payload. Details are
a closed set of pydantic models discriminated by ``kind`` so clients can
switch on the payload type instead of guessing its shape.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

import jwt
from fastapi import status
from pydantic import BaseModel, Field


class FieldError(BaseModel):
    field: str
    message: str
    value: Optional[Any] = None


class ValidationErrorDetails(BaseModel):
    kind: Literal["validation"] = "validation"
    errors: List[FieldError]


class CastErrorDetails(BaseModel):
    kind: Literal["cast"] = "cast"
    field: Optional[str] = None
    value: Optional[Any] = None


class DuplicateKeyDetails(BaseModel):
    kind: Literal["duplicate_key"] = "duplicate_key"
    key: Dict[str, Any]


class MessageDetails(BaseModel):
    kind: Literal["message"] = "message"
    message: str


class AggregateErrorDetails(BaseModel):
    kind: Literal["aggregate"] = "aggregate"
    errors: List["ErrorResponse"]


ErrorDetails = Annotated[
    Union[
        ValidationErrorDetails,
        CastErrorDetails,
        DuplicateKeyDetails,
        MessageDetails,
        AggregateErrorDetails,
    ],
    Field(discriminator="kind"),
]


class ErrorResponse(BaseModel):
    """Body rendered for every failed request."""

    message: str
    error_code: str
    details: Optional[ErrorDetails] = None


AggregateErrorDetails.model_rebuild()


class ServerError(Exception):
    """Base class for errors carrying an HTTP status and an error code."""

    def __init__(
        self,
        message: str,
        status_code: int,
        error_code: str,
        details: Optional[BaseModel] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details

    def to_error_response(self) -> ErrorResponse:
        return ErrorResponse(
            message=self.message,
            error_code=self.error_code,
            details=self.details.model_dump() if self.details is not None else None,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.status_code}, {self.error_code!r}, {self.message!r})"


class APIError(ServerError):
    """Caller-caused conditions: bad input, missing resources, conflicts."""

    @classmethod
    def bad_request(cls, message: str, details: Optional[BaseModel] = None) -> "APIError":
        return cls(message, status.HTTP_400_BAD_REQUEST, "BAD_REQUEST", details)

    @classmethod
    def not_found(cls, message: str, details: Optional[BaseModel] = None) -> "APIError":
        return cls(message, status.HTTP_404_NOT_FOUND, "NOT_FOUND", details)

    @classmethod
    def conflict(cls, message: str, details: Optional[BaseModel] = None) -> "APIError":
        return cls(message, status.HTTP_409_CONFLICT, "CONFLICT", details)

    @classmethod
    def forbidden(cls, message: str, details: Optional[BaseModel] = None) -> "APIError":
        return cls(message, status.HTTP_403_FORBIDDEN, "FORBIDDEN", details)

    @classmethod
    def internal_server_error(cls, message: str, details: Optional[BaseModel] = None) -> "APIError":
        return cls(message, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_SERVER_ERROR", details)


class AuthError(ServerError):
    """Authentication and authorization failures."""

    @classmethod
    def unauthorized(cls, message: str = "Unauthorized", details: Optional[BaseModel] = None) -> "AuthError":
        return cls(message, status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED", details)

    @classmethod
    def forbidden(cls, message: str = "Forbidden", details: Optional[BaseModel] = None) -> "AuthError":
        return cls(message, status.HTTP_403_FORBIDDEN, "FORBIDDEN", details)

    @classmethod
    def invalid_password(cls, message: str = "Invalid password") -> "AuthError":
        return cls(message, status.HTTP_401_UNAUTHORIZED, "INVALID_PASSWORD")

    @classmethod
    def hashing_failed(cls) -> "AuthError":
        return cls(
            "Failed to hash password",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "PASSWORD_HASHING_FAILED",
        )

    @classmethod
    def from_jwt_error(cls, error: Exception) -> "AuthError":
        """Map a PyJWT failure onto a 401 with a specific code."""
        # ExpiredSignatureError and ImmatureSignatureError subclass InvalidTokenError
        if isinstance(error, jwt.ExpiredSignatureError):
            return cls("Token expired", status.HTTP_401_UNAUTHORIZED, "TOKEN_EXPIRED")
        if isinstance(error, jwt.ImmatureSignatureError):
            return cls("Token not active", status.HTTP_401_UNAUTHORIZED, "TOKEN_NOT_ACTIVE")
        if isinstance(error, jwt.InvalidTokenError):
            return cls("Invalid token", status.HTTP_401_UNAUTHORIZED, "INVALID_TOKEN")
        return cls("Authentication failed", status.HTTP_401_UNAUTHORIZED, "AUTH_FAILED")


class DatabaseError(ServerError):
    """A storage failure translated into the caller-facing error shape."""

    def __init__(
        self,
        message: str,
        error_code: str = "DATABASE_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[BaseModel] = None,
    ):
        super().__init__(message, status_code, error_code, details)


class StorageError(Exception):
    """Raised by repositories before a statement reaches the database."""


class DocumentValidationError(StorageError):
    def __init__(self, model: str, errors: List[FieldError]):
        super().__init__(f"{model} validation failed: " + ", ".join(e.field for e in errors))
        self.model = model
        self.errors = errors


class IdentifierCastError(StorageError):
    def __init__(self, field: str, value: Any):
        super().__init__(f"Cast to identifier failed for value {value!r} at path {field!r}")
        self.field = field
        self.value = value
