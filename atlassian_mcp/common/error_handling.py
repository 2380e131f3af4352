"""ABOUTME: Shared error taxonomy for all Atlassian MCP tools and resources.

Provides the closed set of error kinds, the immutable DomainError value, the
HTTP status code boundary mapping, and convenience constructors so that every
tool reports failures the same way.
"""

from enum import Enum
from typing import Any, Optional


# =============================================================================
# Error Kinds
# =============================================================================

class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced to MCP clients."""
    VALIDATION = "validation_error"
    AUTHENTICATION = "authentication_error"
    PERMISSION = "permission_error"
    NOT_FOUND = "not_found_error"
    CONFLICT = "conflict_error"
    RATE_LIMIT = "rate_limit_error"
    SERVER = "server_error"
    NETWORK = "network_error"
    UNKNOWN = "unknown_error"


# Machine-readable error codes
ERROR_VALIDATION_FAILED: str = "validation_failed"
ERROR_MISSING_CONFIGURATION: str = "missing_configuration"
ERROR_NOT_FOUND: str = "not_found"
ERROR_RATE_LIMITED: str = "rate_limited"
ERROR_NETWORK_ERROR: str = "network_error"
ERROR_TIMEOUT: str = "timeout"
ERROR_VERSION_CONFLICT: str = "version_conflict"


# =============================================================================
# Domain Error
# =============================================================================

class DomainError(Exception):
    """Classified failure raised by domain operations.

    Attributes are read-only once constructed. The handler wrapper consumes
    the error and renders it into a failure envelope.

    Args:
        kind: One of the ErrorKind values
        message: Human-readable error message for users and LLMs
        status_code: HTTP status code when the failure came from the remote API
        code: Machine-readable error code (use ERROR_* constants)

    Example:
        raise DomainError(ErrorKind.VALIDATION, "issue_keys cannot be empty",
                          code=ERROR_VALIDATION_FAILED)
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None
    ):
        super().__init__(message)
        self._kind = ErrorKind(kind)
        self._message = message
        self._status_code = status_code
        self._code = code

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def message(self) -> str:
        return self._message

    @property
    def status_code(self) -> Optional[int]:
        return self._status_code

    @property
    def code(self) -> Optional[str]:
        return self._code

    def __repr__(self) -> str:
        return (
            f"DomainError(kind={self._kind.value!r}, message={self._message!r}, "
            f"status_code={self._status_code!r}, code={self._code!r})"
        )


class ConfigurationError(DomainError):
    """Raised when the Atlassian site, email or API token is not configured."""

    def __init__(self, message: str):
        super().__init__(
            ErrorKind.AUTHENTICATION,
            message,
            code=ERROR_MISSING_CONFIGURATION
        )


def is_domain_error(value: Any) -> bool:
    """Check whether a value is a classified DomainError."""
    return isinstance(value, DomainError)


# =============================================================================
# HTTP Status Code Helpers
# =============================================================================

class HTTPStatusCodes:
    """Helper methods for HTTP status code checks.

    Provides semantic methods to check HTTP status codes instead of
    hardcoding numeric values throughout the codebase.
    """

    @staticmethod
    def is_bad_request(status_code: int) -> bool:
        return status_code == 400

    @staticmethod
    def is_unauthorized(status_code: int) -> bool:
        return status_code == 401

    @staticmethod
    def is_forbidden(status_code: int) -> bool:
        return status_code == 403

    @staticmethod
    def is_not_found(status_code: int) -> bool:
        return status_code == 404

    @staticmethod
    def is_conflict(status_code: int) -> bool:
        return status_code == 409

    @staticmethod
    def is_rate_limit(status_code: int) -> bool:
        return status_code == 429

    @staticmethod
    def is_success(status_code: int) -> bool:
        return 200 <= status_code < 300

    @staticmethod
    def is_server_error(status_code: int) -> bool:
        """Check if status code indicates server error (5xx).

        Example:
            if HTTPStatusCodes.is_server_error(response.status_code):
                logger.error(f"Server error: {response.status_code}")
        """
        return 500 <= status_code < 600


def error_kind_for_status(status_code: Any) -> ErrorKind:
    """Map an HTTP status code onto the error taxonomy.

    400 -> validation, 401 -> authentication, 403 -> permission,
    404 -> not found, 409 -> conflict, 429 -> rate limit, 5xx -> server.
    Everything else, including values that are not integers, is unknown.
    """
    if isinstance(status_code, bool) or not isinstance(status_code, int):
        return ErrorKind.UNKNOWN
    if HTTPStatusCodes.is_bad_request(status_code):
        return ErrorKind.VALIDATION
    if HTTPStatusCodes.is_unauthorized(status_code):
        return ErrorKind.AUTHENTICATION
    if HTTPStatusCodes.is_forbidden(status_code):
        return ErrorKind.PERMISSION
    if HTTPStatusCodes.is_not_found(status_code):
        return ErrorKind.NOT_FOUND
    if HTTPStatusCodes.is_conflict(status_code):
        return ErrorKind.CONFLICT
    if HTTPStatusCodes.is_rate_limit(status_code):
        return ErrorKind.RATE_LIMIT
    if HTTPStatusCodes.is_server_error(status_code):
        return ErrorKind.SERVER
    return ErrorKind.UNKNOWN


# =============================================================================
# Error Creation Functions
# =============================================================================

def error_from_status(
    status_code: int,
    message: str,
    code: Optional[str] = None
) -> DomainError:
    """Create a DomainError classified by HTTP status code.

    Args:
        status_code: HTTP status code returned by the remote API
        message: Human-readable error message
        code: Machine-readable code (defaults to "http_<status>")

    Returns:
        DomainError carrying the mapped kind and the status code
    """
    return DomainError(
        error_kind_for_status(status_code),
        message,
        status_code=status_code,
        code=code or f"http_{status_code}"
    )


def create_validation_error(
    field_name: str,
    error_message: str
) -> DomainError:
    """Create a validation error for invalid input fields.

    Example:
        raise create_validation_error("sprint_id", "sprint_id cannot be empty")
    """
    return DomainError(
        ErrorKind.VALIDATION,
        f"{field_name}: {error_message}",
        status_code=400,
        code=ERROR_VALIDATION_FAILED
    )


def create_not_found_error(
    resource_type: str,
    resource_id: str
) -> DomainError:
    """Create a not found error for missing resources."""
    return DomainError(
        ErrorKind.NOT_FOUND,
        f"{resource_type.capitalize()} not found: {resource_id}",
        status_code=404,
        code=ERROR_NOT_FOUND
    )


def create_network_error(
    url: str,
    error_message: str,
    timed_out: bool = False
) -> DomainError:
    """Create a network error for requests that never produced a response."""
    return DomainError(
        ErrorKind.NETWORK,
        f"Network error calling {url}: {error_message}",
        code=ERROR_TIMEOUT if timed_out else ERROR_NETWORK_ERROR
    )


def create_rate_limit_error(
    retry_after_seconds: Optional[int] = None
) -> DomainError:
    """Create a rate limit error for throttled requests."""
    message = "Rate limit exceeded"
    if retry_after_seconds is not None:
        message += f". Retry after {retry_after_seconds} seconds"

    return DomainError(
        ErrorKind.RATE_LIMIT,
        message,
        status_code=429,
        code=ERROR_RATE_LIMITED
    )


__all__ = [
    "ErrorKind",
    "DomainError",
    "ConfigurationError",
    "is_domain_error",
    "HTTPStatusCodes",
    "error_kind_for_status",
    "error_from_status",
    "create_validation_error",
    "create_not_found_error",
    "create_network_error",
    "create_rate_limit_error",
    "ERROR_VALIDATION_FAILED",
    "ERROR_MISSING_CONFIGURATION",
    "ERROR_NOT_FOUND",
    "ERROR_RATE_LIMITED",
    "ERROR_NETWORK_ERROR",
    "ERROR_TIMEOUT",
    "ERROR_VERSION_CONFLICT",
]
