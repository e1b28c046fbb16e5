"""Common exception hierarchy for storage backends and the HTTP functions."""

from __future__ import annotations


class BoltError(Exception):
    """Base exception for all boltgs failures."""

    def __init__(
        self,
        message: str,
        *,
        bucket: str | None = None,
        key: str | None = None,
        code: int | None = None,
        cause: Exception | None = None,
    ):
        self.message = message
        self.bucket = bucket
        self.key = key
        self.code = code
        self.cause = cause
        super().__init__(message)


class DecodeError(BoltError):
    """Raised when gzip-encoded content fails to decompress."""


class NotFoundError(BoltError):
    """Raised when a bucket or object does not exist at a backend."""


class BackendError(BoltError):
    """Raised on transport-level or storage-service-level failures."""


class PermissionDeniedError(BackendError):
    """Raised when credentials are invalid or access is denied."""


class ConfigError(BoltError):
    """Raised when required configuration is missing or cannot be discovered."""


class RequestError(BoltError):
    """Raised when an incoming request body cannot be parsed."""
