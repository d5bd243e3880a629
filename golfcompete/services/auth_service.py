"""
Authentication helpers: password hashing, JWT access tokens and
password-reset tokens.
"""

import logging
import secrets
from datetime import timedelta
from typing import Dict, Optional

import bcrypt
import jwt

from golfcompete.services import settings_service
from golfcompete.services.errors import AuthError, ErrorCodes
from golfcompete.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against a bcrypt hash."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def validate_password_strength(password: str) -> None:
    if password is None or len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            ErrorCodes.AUTH_WEAK_PASSWORD,
        )


def normalize_email(email: str) -> str:
    return email.strip().lower()


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to embed (must include user_id)
        expires_delta: Lifetime override; defaults to ACCESS_TOKEN_EXPIRATION_MINUTES

    Raises:
        ConfigurationError: If JWT_SECRET_KEY is not configured
    """
    secret = settings_service.get_required_setting("JWT_SECRET_KEY")
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings_service.get_access_token_expiration_minutes())
    now = utcnow()
    payload = {**data, "iat": now, "exp": now + expires_delta}
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict]:
    """
    Decode and verify a JWT access token.

    Returns:
        The token claims, or None if the token is invalid or expired.
    """
    secret = settings_service.get_setting("JWT_SECRET_KEY")
    if not secret:
        logger.error("JWT_SECRET_KEY not configured; rejecting token")
        return None
    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("Access token expired")
        return None
    except jwt.InvalidTokenError:
        return None


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)
