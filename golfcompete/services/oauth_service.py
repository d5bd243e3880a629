"""
External identity backend client (OAuth sign-in).

The backend owns the provider handshake; this module builds the authorize
URL for a provider and exchanges the returned auth code for the signed-in
identity.
"""

import logging
from typing import Dict, Optional
from urllib.parse import urlencode

import httpx

from golfcompete.services import settings_service
from golfcompete.services.errors import AuthError, ErrorCodes

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("google", "github", "facebook")
REQUEST_TIMEOUT_SECONDS = 10.0


def build_authorize_url(provider: str, redirect_to: str) -> str:
    """
    URL that starts the provider sign-in flow.

    Raises:
        AuthError: VALIDATION_ERROR for unsupported providers
        ConfigurationError: If IDENTITY_BACKEND_URL is not configured
    """
    if provider not in SUPPORTED_PROVIDERS:
        raise AuthError(f"Unsupported OAuth provider: {provider}", ErrorCodes.VALIDATION_ERROR)
    backend_url = settings_service.get_required_setting("IDENTITY_BACKEND_URL").rstrip("/")
    query = urlencode({"provider": provider, "redirect_to": redirect_to})
    return f"{backend_url}/auth/v1/authorize?{query}"


async def exchange_code_for_identity(code: str, code_verifier: Optional[str] = None) -> Dict:
    """
    Exchange an OAuth auth code for the identity it represents.

    Returns:
        Dict with email, provider, first_name and last_name.

    Raises:
        AuthError: If the backend rejects the code or returns no email
        ConfigurationError: If the identity backend is not configured
    """
    backend_url = settings_service.get_required_setting("IDENTITY_BACKEND_URL").rstrip("/")
    anon_key = settings_service.get_required_setting("IDENTITY_ANON_KEY")

    payload = {"auth_code": code}
    if code_verifier:
        payload["code_verifier"] = code_verifier

    try:
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
            resp = await client.post(
                f"{backend_url}/auth/v1/token",
                params={"grant_type": "pkce"},
                json=payload,
                headers={"apikey": anon_key},
            )
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPError as e:
        logger.warning(f"OAuth code exchange failed: {e}")
        raise AuthError("Failed to exchange authorization code", ErrorCodes.UNAUTHORIZED, e)

    user = data.get("user") or {}
    email = user.get("email")
    if not email:
        raise AuthError("Identity backend returned no email", ErrorCodes.UNAUTHORIZED)

    metadata = user.get("user_metadata") or {}
    full_name = metadata.get("full_name") or metadata.get("name") or ""
    first_name, _, last_name = full_name.partition(" ")
    provider = (user.get("app_metadata") or {}).get("provider", "email")

    return {
        "email": email,
        "provider": provider,
        "first_name": first_name or None,
        "last_name": last_name or None,
    }
