from __future__ import annotations
"""Error kinds raised by the S3 filesystem adapter."""
from enum import Enum

from botocore.exceptions import ClientError

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    BACKEND = "backend"
    CONFIGURATION = "configuration"


class StorageError(Exception):
    """Base class for errors produced by the adapter itself."""

    kind = ErrorKind.BACKEND


class NotFoundError(StorageError, FileNotFoundError):
    """Raised when the backend reports a missing key."""

    kind = ErrorKind.NOT_FOUND


class ConfigurationError(StorageError, ValueError):
    """Raised when a bucket configuration is missing a required value."""

    kind = ErrorKind.CONFIGURATION


def is_not_found(exc: ClientError) -> bool:
    response = getattr(exc, "response", None) or {}
    status = (response.get("ResponseMetadata") or {}).get("HTTPStatusCode")
    code = str((response.get("Error") or {}).get("Code") or "")
    return status == 404 or code in NOT_FOUND_CODES


def classify_error(exc: BaseException) -> ErrorKind:
    """Return the kind tag for any exception raised by an adapter operation.

    Backend errors are propagated untouched, so they are tagged here rather
    than wrapped.
    """

    if isinstance(exc, StorageError):
        return exc.kind
    if isinstance(exc, ClientError) and is_not_found(exc):
        return ErrorKind.NOT_FOUND
    return ErrorKind.BACKEND
