"""
Settings service for runtime configuration.

Values come from environment variables (a local .env file is loaded on
import). Required settings raise ConfigurationError when absent so the
request fails with CONFIGURATION_ERROR instead of running half-configured.
"""

import os
import logging
from typing import List, Optional
from dotenv import load_dotenv

from golfcompete.services.errors import ErrorCodes, ServiceError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_SITE_URL = "http://localhost:3000"
DEFAULT_ACCESS_TOKEN_EXPIRATION_MINUTES = 60 * 24
DEFAULT_PASSWORD_RESET_EXPIRATION_MINUTES = 60

# Settings the API cannot serve requests without
REQUIRED_SETTINGS = ("DATABASE_URL", "JWT_SECRET_KEY")

# Settings whose absence only disables a feature
FEATURE_SETTINGS = {
    "IDENTITY_BACKEND_URL": "OAuth sign-in",
    "IDENTITY_ANON_KEY": "OAuth sign-in",
    "SERVICE_ROLE_KEY": "service-role user administration",
    "SENDGRID_API_KEY": "password reset emails",
}


class ConfigurationError(ServiceError):
    """A required setting is missing or malformed."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCodes.CONFIGURATION_ERROR)


def get_bool_env(key: str, default: bool = True) -> bool:
    """
    Parse a boolean environment variable from a string value.

    Args:
        key: Environment variable name
        default: Default value if the variable is not set

    Returns:
        bool: Parsed boolean value
    """
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


def get_setting(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def get_required_setting(name: str) -> str:
    """Return a setting or raise ConfigurationError if it is unset."""
    value = get_setting(name)
    if value is None:
        raise ConfigurationError(f"Missing required configuration: {name}")
    return value


def get_int_setting(name: str, default: int) -> int:
    value = get_setting(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Configuration {name} must be an integer, got {value!r}")


def get_site_url() -> str:
    return get_setting("SITE_URL", DEFAULT_SITE_URL).rstrip("/")


def get_allowed_origins() -> List[str]:
    origins = get_setting("ALLOWED_ORIGINS", DEFAULT_SITE_URL)
    return [origin.strip() for origin in origins.split(",") if origin.strip()]


def get_access_token_expiration_minutes() -> int:
    return get_int_setting(
        "ACCESS_TOKEN_EXPIRATION_MINUTES", DEFAULT_ACCESS_TOKEN_EXPIRATION_MINUTES
    )


def get_password_reset_expiration_minutes() -> int:
    return get_int_setting(
        "PASSWORD_RESET_EXPIRATION_MINUTES", DEFAULT_PASSWORD_RESET_EXPIRATION_MINUTES
    )


def is_test_env() -> bool:
    return os.getenv("ENV", "").lower() == "test"


def validate_settings() -> List[str]:
    """
    Log missing configuration at startup.

    Returns:
        Names of missing required settings.
    """
    missing = [name for name in REQUIRED_SETTINGS if get_setting(name) is None]
    for name in missing:
        logger.error(f"Required setting {name} is not configured")
    for name, feature in FEATURE_SETTINGS.items():
        if get_setting(name) is None:
            logger.warning(f"{name} not configured; {feature} disabled")
    return missing
