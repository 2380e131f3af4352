"""ABOUTME: Atlassian site and credential configuration loaded from the environment."""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from .error_handling import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SERVER_NAME = "mcp-atlassian-integration"
DEFAULT_SERVER_VERSION = "1.0.0"
DEFAULT_HTTP_TIMEOUT = 30.0


class AtlassianSettings(BaseSettings):
    """Atlassian MCP settings from environment or .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    atlassian_site_name: str = ""
    atlassian_user_email: str = ""
    atlassian_api_token: str = ""
    mcp_server_name: str = DEFAULT_SERVER_NAME
    mcp_server_version: str = DEFAULT_SERVER_VERSION
    log_level: str = "INFO"
    http_timeout: float = DEFAULT_HTTP_TIMEOUT


class AtlassianConfig(BaseModel):
    """Base URL and credentials for one Atlassian Cloud site."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    email: str
    api_token: str
    timeout: float = DEFAULT_HTTP_TIMEOUT


def normalize_base_url(site: str) -> str:
    """Normalize a site name or URL to https://<site> without a trailing /wiki.

    Examples:
        normalize_base_url("example.atlassian.net")              # https://example.atlassian.net
        normalize_base_url("https://example.atlassian.net/wiki/") # https://example.atlassian.net
    """
    url = site.strip().rstrip("/")
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    if url.endswith("/wiki"):
        url = url[: -len("/wiki")]
    return url


def confluence_base_url(config: AtlassianConfig) -> str:
    """Confluence REST APIs live under /wiki on Atlassian Cloud."""
    return f"{config.base_url}/wiki"


def get_config(settings: Optional[AtlassianSettings] = None) -> AtlassianConfig:
    """Build the Atlassian configuration, reading the environment once.

    Raises:
        ConfigurationError: If site name, user email or API token is missing
    """
    settings = settings or AtlassianSettings()

    missing = [
        env_name
        for env_name, value in (
            ("ATLASSIAN_SITE_NAME", settings.atlassian_site_name),
            ("ATLASSIAN_USER_EMAIL", settings.atlassian_user_email),
            ("ATLASSIAN_API_TOKEN", settings.atlassian_api_token),
        )
        if not value.strip()
    ]
    if missing:
        logger.error(f"Missing Atlassian credentials in environment variables: {', '.join(missing)}")
        raise ConfigurationError(
            f"Missing Atlassian credentials in environment variables: {', '.join(missing)}"
        )

    return AtlassianConfig(
        base_url=normalize_base_url(settings.atlassian_site_name),
        email=settings.atlassian_user_email.strip(),
        api_token=settings.atlassian_api_token.strip(),
        timeout=settings.http_timeout,
    )


__all__ = [
    "AtlassianSettings",
    "AtlassianConfig",
    "normalize_base_url",
    "confluence_base_url",
    "get_config",
    "DEFAULT_SERVER_NAME",
    "DEFAULT_SERVER_VERSION",
    "DEFAULT_HTTP_TIMEOUT",
]
