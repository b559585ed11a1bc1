"""
Google OAuth 2.0 authorization-code flow: consent URL, code exchange, userinfo.
Only the verified profile (sub, email, name) leaves this module.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx
from fastapi import Request

from app.config import settings

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPE = "openid email profile"
CALLBACK_PATH = "/auth/external/callback"


class GoogleOAuthError(Exception):
    """Any failure talking to Google; the callback turns it into an error redirect."""


@dataclass(frozen=True)
class ExternalProfile:
    external_id: str
    email: str
    name: Optional[str] = None


def get_redirect_uri(request: Request) -> str:
    # Prefer explicit base URL (set PUBLIC_BASE_URL in production so it matches the OAuth app config exactly)
    base = (settings.public_base_url or "").strip().rstrip("/")
    if not base:
        # Behind a proxy use forwarded headers
        forwarded_proto = (request.headers.get("x-forwarded-proto") or "").strip().lower()
        host = (request.headers.get("x-forwarded-host") or "").strip()
        if host and forwarded_proto:
            base = f"{forwarded_proto}://{host}"
        else:
            base = str(request.base_url).rstrip("/")
    return f"{base}{CALLBACK_PATH}"


def build_authorization_url(redirect_uri: str, state: str) -> str:
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": GOOGLE_SCOPE,
        "state": state,
        "prompt": "select_account",
    }
    return GOOGLE_AUTH_URL + "?" + urlencode(params)


async def fetch_google_profile(code: str, redirect_uri: str) -> ExternalProfile:
    """Exchange the authorization code and read the user's profile."""
    token_payload = {
        "code": code,
        "client_id": settings.google_client_id,
        "client_secret": settings.google_client_secret,
        "redirect_uri": redirect_uri,
        "grant_type": "authorization_code",
    }
    headers = {"Accept": "application/json"}
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            token_resp = await client.post(GOOGLE_TOKEN_URL, data=token_payload, headers=headers)
            if token_resp.status_code != 200:
                logger.warning(
                    "Token exchange failed status=%s body=%s redirect_uri=%s",
                    token_resp.status_code, token_resp.text[:200], redirect_uri,
                )
                raise GoogleOAuthError("token exchange failed")
            access_token = token_resp.json().get("access_token")
            if not access_token:
                raise GoogleOAuthError("no access token")

            user_resp = await client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
    except httpx.HTTPError as e:
        logger.warning("Google OAuth request failed: %s", e)
        raise GoogleOAuthError(str(e)) from e

    if user_resp.status_code != 200:
        logger.warning("Userinfo failed %s: %s", user_resp.status_code, user_resp.text[:200])
        raise GoogleOAuthError("userinfo failed")

    data = user_resp.json()
    external_id = (data.get("sub") or "").strip()
    email = (data.get("email") or "").strip().lower()
    if not external_id or not email:
        logger.warning("Google profile missing sub/email: %s", list(data.keys()))
        raise GoogleOAuthError("incomplete profile")
    if data.get("email_verified") is False:
        raise GoogleOAuthError("email not verified by Google")
    return ExternalProfile(external_id=external_id, email=email, name=data.get("name"))
