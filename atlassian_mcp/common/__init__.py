"""ABOUTME: Common MCP server utilities and shared infrastructure."""

from .mcp_base import MCPServerBase
from .config import AtlassianConfig, AtlassianSettings, get_config
from .error_handling import (
    # Error kinds and the classified error
    ErrorKind,
    DomainError,
    ConfigurationError,
    is_domain_error,
    # Error code constants
    ERROR_VALIDATION_FAILED,
    ERROR_MISSING_CONFIGURATION,
    ERROR_NOT_FOUND,
    ERROR_RATE_LIMITED,
    ERROR_NETWORK_ERROR,
    ERROR_TIMEOUT,
    ERROR_VERSION_CONFLICT,
    # HTTP status code helpers
    HTTPStatusCodes,
    error_kind_for_status,
    # Error creation functions
    error_from_status,
    create_validation_error,
    create_not_found_error,
    create_network_error,
    create_rate_limit_error,
)
from .pagination import create_standard_metadata, create_standard_resource, extract_paging_params
from .responses import failure, success, wrap_with_error_handling

__all__ = [
    "MCPServerBase",
    "AtlassianConfig",
    "AtlassianSettings",
    "get_config",
    # Error kinds and the classified error
    "ErrorKind",
    "DomainError",
    "ConfigurationError",
    "is_domain_error",
    # Error code constants
    "ERROR_VALIDATION_FAILED",
    "ERROR_MISSING_CONFIGURATION",
    "ERROR_NOT_FOUND",
    "ERROR_RATE_LIMITED",
    "ERROR_NETWORK_ERROR",
    "ERROR_TIMEOUT",
    "ERROR_VERSION_CONFLICT",
    # HTTP status code helpers
    "HTTPStatusCodes",
    "error_kind_for_status",
    # Error creation functions
    "error_from_status",
    "create_validation_error",
    "create_not_found_error",
    "create_network_error",
    "create_rate_limit_error",
    # Envelopes and paging
    "success",
    "failure",
    "wrap_with_error_handling",
    "extract_paging_params",
    "create_standard_metadata",
    "create_standard_resource",
]
