"""Storage error taxonomy and translation of botocore failures."""

from __future__ import annotations

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

AUTH_ERROR_CODES = frozenset(
    {
        "InvalidAccessKeyId",
        "SignatureDoesNotMatch",
        "InvalidClientTokenId",
        "InvalidToken",
        "ExpiredToken",
        "TokenRefreshRequired",
        "AuthFailure",
        "UnrecognizedClientException",
    }
)
NOT_FOUND_ERROR_CODES = frozenset({"404", "NoSuchBucket", "NoSuchKey", "NotFound"})
ACCESS_DENIED_ERROR_CODES = frozenset(
    {"403", "AccessDenied", "AllAccessDisabled", "AccountProblem", "Forbidden"}
)


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.code = code
        self.status_code = status_code


class AuthenticationError(StorageError):
    """Credentials are missing, invalid or were rejected."""


class ConnectivityError(StorageError):
    """The storage endpoint could not be reached."""


class NotFoundError(StorageError):
    """The referenced bucket or key does not exist."""


class AccessDeniedError(StorageError):
    """The provider refused the requested operation."""


class LocalIOError(StorageError):
    """A local file could not be read."""


class ProviderError(StorageError):
    """Any other failure reported by the storage service."""


def client_error_code(exc: ClientError) -> str | None:
    code = exc.response.get("Error", {}).get("Code")
    return str(code) if code is not None else None


def client_error_status(exc: ClientError) -> int | None:
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return int(status) if status is not None else None


def is_not_found(exc: ClientError) -> bool:
    return client_error_code(exc) in NOT_FOUND_ERROR_CODES


def _classify(code: str | None, status: int | None) -> type[StorageError]:
    if code in AUTH_ERROR_CODES:
        return AuthenticationError
    if code in NOT_FOUND_ERROR_CODES or (code is None and status == 404):
        return NotFoundError
    if code in ACCESS_DENIED_ERROR_CODES or (code is None and status == 403):
        return AccessDeniedError
    return ProviderError


def translate_error(exc: Exception, *, operation: str) -> StorageError:
    """Map a botocore (or local) exception onto the storage taxonomy."""
    if isinstance(exc, StorageError):
        return exc
    if isinstance(exc, ClientError):
        code = client_error_code(exc)
        status = client_error_status(exc)
        message = exc.response.get("Error", {}).get("Message") or str(exc)
        error_cls = _classify(code, status)
        return error_cls(
            f"Failed to {operation}: {message}",
            operation=operation,
            code=code,
            status_code=status,
        )
    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return AuthenticationError(
            f"Failed to {operation}: {exc}", operation=operation
        )
    if isinstance(exc, (BotoConnectionError, HTTPClientError)):
        return ConnectivityError(f"Failed to {operation}: {exc}", operation=operation)
    if isinstance(exc, BotoCoreError):
        return ProviderError(f"Failed to {operation}: {exc}", operation=operation)
    if isinstance(exc, OSError):
        return LocalIOError(f"Failed to {operation}: {exc}", operation=operation)
    return ProviderError(f"Failed to {operation}: {exc}", operation=operation)
