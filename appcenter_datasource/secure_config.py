"""
Secure Configuration Management

Provides the App Center data source configuration, built either from the
settings form (DataSourceSettings) or from environment variables.

Usage:
    from appcenter_datasource.secure_config import get_config

    config = get_config().get_datasource_config()
    print(config.base_url)
    print(config.app_names)

Environment variables:
    APPCENTER_URL         Base URL (default https://api.appcenter.ms)
    APPCENTER_ORG_NAME    Organization (owner) name
    APPCENTER_APP_NAME    Semicolon-separated app names
    APPCENTER_API_KEY     User API token
    APPCENTER_RATE_LIMIT  Max requests per second (0 disables)

Raises:
    ConfigurationError: If a required value is missing when it is needed
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://api.appcenter.ms"

# Host must end in a 2-6 letter TLD; optional port and path
BASE_URL_PATTERN = re.compile(r"^(http|https)://[a-z0-9\-.]+\.[a-z]{2,6}(:\d+)?(/\S*)?$")

ORG_NAME_REQUIRED = (
    'The "Organization name" has to be configured on datasource settings. '
    "Available options can be checked the listOrgs query."
)
APP_NAME_REQUIRED = (
    'The "App name" has to be configured on datasource settings. '
    "Available options can be checked the listApps query."
)


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


def sanitize_name(value: str | None) -> str:
    """Replace every run of whitespace with a single dash, as the settings form does."""
    return re.sub(r"\s+", "-", value or "")


def parse_app_names(value: str | None) -> tuple[str, ...]:
    """
    Parse a semicolon-delimited app list into an ordered set.

    Blank segments are dropped; duplicates keep their first position.

    Example:
        >>> parse_app_names("ios-app;android-app;;ios-app")
        ('ios-app', 'android-app')
    """
    names = (name.strip() for name in (value or "").split(";"))
    return tuple(dict.fromkeys(name for name in names if name))


@dataclass(frozen=True)
class DataSourceConfig:
    """
    Immutable App Center data source configuration.

    Construction never raises for missing values: the connectivity check
    reports a missing URL/key as a structured result, and handlers require
    org/app names only when they need them.
    """

    base_url: str
    org_name: str = ""
    app_names: tuple[str, ...] = ()
    api_key: str = field(default="", repr=False)
    rate_limit: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", (self.base_url or "").strip().rstrip("/"))
        object.__setattr__(self, "org_name", (self.org_name or "").strip())
        if isinstance(self.app_names, str):
            object.__setattr__(self, "app_names", parse_app_names(self.app_names))
        else:
            object.__setattr__(self, "app_names", tuple(dict.fromkeys(self.app_names)))
        if self.rate_limit < 0:
            raise ConfigurationError(f"Request rate limit must not be negative: {self.rate_limit}")

    def require_org(self) -> str:
        """Return the organization name or raise the user-facing configuration error."""
        if not self.org_name:
            raise ConfigurationError(ORG_NAME_REQUIRED)
        return self.org_name

    def require_apps(self) -> tuple[str, ...]:
        """Return the configured app names or raise the user-facing configuration error."""
        if not self.app_names:
            raise ConfigurationError(APP_NAME_REQUIRED)
        return self.app_names

    def base_url_is_valid(self) -> bool:
        return bool(BASE_URL_PATTERN.match(self.base_url.lower()))


@dataclass
class DataSourceSettings:
    """
    Settings as stored by the data source settings form.

    ``key`` is the non-secret echo of the API key kept alongside the other
    options; ``api_key`` is the secret copy used for outgoing requests.
    """

    url: str = DEFAULT_BASE_URL
    org_name: str = ""
    app_name: str = ""
    key: str = ""
    api_key: str = ""
    rate_limit: float = 0.0

    def __post_init__(self) -> None:
        self.org_name = sanitize_name(self.org_name)
        self.app_name = sanitize_name(self.app_name)

    @classmethod
    def from_json(cls, json_data: dict[str, Any], secure_json_data: dict[str, Any] | None = None) -> "DataSourceSettings":
        """
        Build settings from the stored ``jsonData``/``secureJsonData`` pair.

        Example:
            settings = DataSourceSettings.from_json(
                {"url": "https://api.appcenter.ms", "orgName": "my org", "appName": "a;b"},
                {"apiKey": "secret"},
            )
            settings.org_name  # "my-org"
        """
        secure_json_data = secure_json_data or {}
        return cls(
            url=json_data.get("url") or DEFAULT_BASE_URL,
            org_name=json_data.get("orgName", ""),
            app_name=json_data.get("appName", ""),
            key=json_data.get("key", ""),
            api_key=secure_json_data.get("apiKey") or json_data.get("key", ""),
            rate_limit=float(json_data.get("rateLimit") or 0),
        )

    def to_json_data(self) -> dict[str, Any]:
        """Non-secret settings surface."""
        return {
            "url": self.url,
            "orgName": self.org_name,
            "appName": self.app_name,
            "key": self.key,
            "rateLimit": self.rate_limit,
        }

    def to_secure_json_data(self) -> dict[str, str]:
        return {"apiKey": self.api_key}

    def to_config(self) -> DataSourceConfig:
        return DataSourceConfig(
            base_url=self.url,
            org_name=self.org_name,
            app_names=parse_app_names(self.app_name),
            api_key=self.api_key or self.key,
            rate_limit=self.rate_limit,
        )


class SecureConfig:
    """
    Centralized configuration manager.

    Loads the data source configuration from environment variables (and a
    local .env file, if present).
    """

    def __init__(self):
        """Initialize configuration (loads .env file)."""
        load_dotenv()

    def get_settings(self) -> DataSourceSettings:
        """
        Get data source settings from the environment.

        Raises:
            ConfigurationError: If APPCENTER_RATE_LIMIT is not a number
        """
        rate_limit = os.getenv("APPCENTER_RATE_LIMIT", "0")
        try:
            parsed_rate_limit = float(rate_limit or 0)
        except ValueError as e:
            raise ConfigurationError(f"APPCENTER_RATE_LIMIT must be a number: {rate_limit}") from e

        api_key = os.getenv("APPCENTER_API_KEY", "")
        return DataSourceSettings(
            url=os.getenv("APPCENTER_URL") or DEFAULT_BASE_URL,
            org_name=os.getenv("APPCENTER_ORG_NAME", ""),
            app_name=os.getenv("APPCENTER_APP_NAME", ""),
            key=api_key,
            api_key=api_key,
            rate_limit=parsed_rate_limit,
        )

    def get_datasource_config(self) -> DataSourceConfig:
        """Get the data source configuration from the environment."""
        return self.get_settings().to_config()


_config_instance: SecureConfig | None = None


def get_config() -> SecureConfig:
    """
    Get the global configuration instance (singleton pattern).

    Returns:
        SecureConfig: The configuration manager
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = SecureConfig()
    return _config_instance
