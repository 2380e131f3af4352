"""ABOUTME: Shared validation utility module for Atlassian MCP tools.

Standalone validators return (is_valid, error_message) tuples like the rest of
the shared utilities; require_valid() turns a failed check into a validation
DomainError for domain operations.
"""

import re
from datetime import datetime
from typing import Any, Optional, Sequence, Tuple

from .error_handling import ERROR_VALIDATION_FAILED, DomainError, ErrorKind


# =============================================================================
# Validation Constants
# =============================================================================

# Jira issue keys look like PROJ-123
ISSUE_KEY_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*-\d+$")
MAX_ISSUES_PER_REQUEST: int = 50

ValidationResult = Tuple[bool, Optional[str]]


# =============================================================================
# Standalone Validator Functions
# =============================================================================

def validate_non_empty_string(
    value: Any,
    field_name: str = "field"
) -> ValidationResult:
    """Validate that string is not empty and return (is_valid, error_message).

    Example:
        is_valid, error = validate_non_empty_string(sprint_id, "sprint_id")
    """
    if not isinstance(value, str):
        return False, f"{field_name} must be a string, got {type(value).__name__}"

    if not value.strip():
        return False, f"{field_name} cannot be empty or whitespace-only"

    return True, None


def validate_issue_keys(
    issue_keys: Any,
    field_name: str = "issue_keys",
    max_count: int = MAX_ISSUES_PER_REQUEST
) -> ValidationResult:
    """Validate a list of Jira issue keys.

    The Jira agile API accepts at most 50 issues per request; each key must
    look like PROJ-123.
    """
    if isinstance(issue_keys, str) or not isinstance(issue_keys, Sequence):
        return False, f"{field_name} must be a list of issue keys"

    if not issue_keys:
        return False, f"{field_name} cannot be empty"

    if len(issue_keys) > max_count:
        return False, f"{field_name} accepts at most {max_count} issues, got {len(issue_keys)}"

    invalid = [key for key in issue_keys if not isinstance(key, str) or not ISSUE_KEY_PATTERN.match(key.strip())]
    if invalid:
        return False, f"{field_name} contains invalid issue keys: {', '.join(map(str, invalid))}"

    return True, None


def validate_positive_integer(
    value: Any,
    field_name: str = "value"
) -> ValidationResult:
    """Validate that value is a positive integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{field_name} must be an integer, got {type(value).__name__}"

    if value <= 0:
        return False, f"{field_name} must be positive, got {value}"

    return True, None


def validate_datetime_string(
    value: Any,
    field_name: str = "date"
) -> ValidationResult:
    """Validate an ISO 8601 date/time string (e.g. 2024-05-01T09:00:00.000Z)."""
    is_valid, error = validate_non_empty_string(value, field_name)
    if not is_valid:
        return is_valid, error

    candidate = value.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        datetime.fromisoformat(candidate)
    except ValueError:
        return False, f"{field_name} must be an ISO 8601 date/time, got {value!r}"

    return True, None


def require_valid(result: ValidationResult, field_name: str) -> None:
    """Raise a validation DomainError when a validator reported a failure.

    Example:
        require_valid(validate_issue_keys(issue_keys), "issue_keys")
    """
    is_valid, error = result
    if not is_valid:
        raise DomainError(
            ErrorKind.VALIDATION,
            error or f"{field_name} is invalid",
            status_code=400,
            code=ERROR_VALIDATION_FAILED
        )


__all__ = [
    "ISSUE_KEY_PATTERN",
    "MAX_ISSUES_PER_REQUEST",
    "ValidationResult",
    "validate_non_empty_string",
    "validate_issue_keys",
    "validate_positive_integer",
    "validate_datetime_string",
    "require_valid",
]
