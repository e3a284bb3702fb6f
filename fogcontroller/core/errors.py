"""
Standardized error classification for the fog controller.

Services raise `FogControllerError` subclasses; the HTTP layer turns them
into a failure envelope with the status code of their kind, and the CLI
dispatch boundary logs them. Anything that is not a `FogControllerError`
is treated as unexpected.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Standardized error categories."""

    VALIDATION = "validation"       # Bad input, mutually exclusive options
    AUTH = "auth"                   # Unknown/expired token, unresolved user
    NOT_FOUND = "not_found"         # Entity lookup failed
    CONFLICT = "conflict"           # Duplicate entity

    # Database errors
    DB_CONNECTION = "db_connection"
    DB_CONSTRAINT = "db_constraint"

    # Input files
    PARSE = "parse"                 # JSON/YAML parsing failure

    UNKNOWN = "unknown"


class ErrorInfo(BaseModel):
    """Serializable description of an error, used for logs and responses."""

    kind: ErrorKind = Field(
        default=ErrorKind.UNKNOWN,
        description="Error category"
    )
    code: str = Field(
        default="UNKNOWN",
        description="Error code (HTTP_404, PG_23503, ...)"
    )
    message: str = Field(
        default="Unknown error",
        description="Human-readable error message"
    )
    source: str = Field(
        default="unknown",
        description="Layer that produced this error"
    )
    http_status: Optional[int] = Field(
        None, description="HTTP status code the error maps to"
    )
    pg_code: Optional[str] = Field(
        None, description="PostgreSQL error code (e.g., 23503, 23505)"
    )
    exception_type: Optional[str] = Field(
        None, description="Python exception class name"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d = {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "source": self.source,
        }
        if self.http_status is not None:
            d["http_status"] = self.http_status
        if self.pg_code is not None:
            d["pg_code"] = self.pg_code
        if self.exception_type is not None:
            d["exception_type"] = self.exception_type
        if self.details:
            d["details"] = self.details
        return d


class FogControllerError(Exception):
    """Base class for expected application errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    status_code: int = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(
            kind=self.kind,
            code=f"HTTP_{self.status_code}",
            message=self.message,
            source="service",
            http_status=self.status_code,
            exception_type=type(self).__name__,
            details=self.details,
        )


class ValidationError(FogControllerError):
    kind = ErrorKind.VALIDATION
    status_code = 400


class AuthenticationError(FogControllerError):
    kind = ErrorKind.AUTH
    status_code = 401


class NotFoundError(FogControllerError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class ConflictError(FogControllerError):
    kind = ErrorKind.CONFLICT
    status_code = 409


def classify_postgres_error(
    error: Exception,
    error_code: Optional[str] = None,
) -> ErrorInfo:
    """Classify PostgreSQL errors."""
    error_str = str(error).lower()

    pg_code = error_code
    if not pg_code and hasattr(error, 'sqlstate'):
        pg_code = error.sqlstate

    code = f"PG_{pg_code}" if pg_code else "PG_UNKNOWN"

    # Unique/foreign key/not null
    if "unique" in error_str or "duplicate" in error_str or (pg_code and pg_code.startswith("23")):
        return ErrorInfo(
            kind=ErrorKind.DB_CONSTRAINT,
            code=code,
            message=str(error),
            source="postgres",
            pg_code=pg_code,
        )

    if "connection" in error_str or (pg_code and pg_code.startswith("08")):
        return ErrorInfo(
            kind=ErrorKind.DB_CONNECTION,
            code=code,
            message=str(error),
            source="postgres",
            pg_code=pg_code,
        )

    return ErrorInfo(
        kind=ErrorKind.UNKNOWN,
        code=code,
        message=str(error),
        source="postgres",
        pg_code=pg_code,
    )


def classify_python_error(error: Exception) -> ErrorInfo:
    """Classify errors raised by local code (file reading, JSON parsing...)."""
    error_type = type(error).__name__

    if error_type == "JSONDecodeError" or "json" in str(error).lower():
        kind = ErrorKind.PARSE
    elif error_type in ("TypeError", "ValueError", "KeyError"):
        kind = ErrorKind.VALIDATION
    else:
        kind = ErrorKind.UNKNOWN

    return ErrorInfo(
        kind=kind,
        code=f"PY_{error_type}",
        message=str(error),
        source="python",
        exception_type=error_type,
    )


def classify_error(error: Exception) -> ErrorInfo:
    """Route an exception to the matching classifier."""
    if isinstance(error, FogControllerError):
        return error.to_info()

    module = type(error).__module__ or ""
    if module.startswith("psycopg"):
        return classify_postgres_error(error)

    return classify_python_error(error)


__all__ = [
    "ErrorKind",
    "ErrorInfo",
    "FogControllerError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "ConflictError",
    "classify_postgres_error",
    "classify_python_error",
    "classify_error",
]
