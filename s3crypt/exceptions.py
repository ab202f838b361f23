"""
S3 crypt browser exception hierarchy.

All exceptions inherit from S3CryptError for easy catching.
"""

from typing import Any


class S3CryptError(Exception):
    """Base exception for all s3crypt errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ValidationError(S3CryptError):
    """User input rejected before anything is sent or persisted."""


class InvalidCredentialsError(ValidationError):
    """A required sign-in field is empty."""

    def __init__(self, message: str, *, field: str) -> None:
        super().__init__(message, field=field)
        self.field = field


class RemoteError(S3CryptError):
    """Object store request failed."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, code=code, status=status, operation=operation)
        self.code = code
        self.status = status
        self.operation = operation


class NotFoundError(RemoteError):
    """Bucket or object not found."""

    def __init__(
        self, message: str, *, code: str = "NoSuchKey", operation: str | None = None
    ) -> None:
        super().__init__(message, code=code, status=404, operation=operation)


class AccessDeniedError(RemoteError):
    """Credentials rejected or lacking permission."""

    def __init__(
        self, message: str, *, code: str = "AccessDenied", operation: str | None = None
    ) -> None:
        super().__init__(message, code=code, status=403, operation=operation)


class RateLimitError(RemoteError):
    """Throttled by the object store."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        status: int = 429,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, code="SlowDown", status=status, operation=operation)


class ServerError(RemoteError):
    """Server-side error (5xx)."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int = 500,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, code=code, status=status, operation=operation)


class NetworkError(RemoteError):
    """Network-level error (connection failed, timeout)."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message, operation=operation)


class DecryptError(S3CryptError):
    """Decrypt round-trip failed, timed out or returned a partial batch."""

    def __init__(self, message: str, *, kind: str | None = None) -> None:
        super().__init__(message, kind=kind)
        self.kind = kind


class ExportError(S3CryptError):
    """Decrypted file could not be written locally."""

    def __init__(self, message: str, *, name: str) -> None:
        super().__init__(message, name=name)
        self.name = name


def describe_error(error: BaseException) -> str:
    """
    Render an error as the status line shown to the user.

    Args:
        error: Any exception raised by a remote, decrypt or validation step.

    Returns:
        Human-readable message without credentials.
    """
    if isinstance(error, InvalidCredentialsError):
        return error.message
    if isinstance(error, NetworkError):
        return f"Network error: {error.message}"
    if isinstance(error, NotFoundError):
        return f"Not found: {error.message}"
    if isinstance(error, AccessDeniedError):
        return f"Access denied: {error.message}"
    if isinstance(error, RateLimitError):
        return "The storage provider is throttling requests, try again later"
    if isinstance(error, RemoteError):
        status = f"HTTP {error.status}" if error.status is not None else "request failed"
        return f"Storage error ({status}): {error.message}"
    if isinstance(error, DecryptError):
        return f"Decryption failed: {error.message}"
    if isinstance(error, S3CryptError):
        return error.message
    return f"Unexpected error: {type(error).__name__}"
