"""
JWT helpers: session tokens (sub = user id) and the signed OAuth `state` value.
Protected routes depend on get_current_claims, which reads `Authorization: Bearer <token>`.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.context import AuthContext, get_auth_context
from app.core.errors import Unauthorized

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

OAUTH_STATE_PURPOSE = "oauth_state"
OAUTH_STATE_TTL = timedelta(minutes=10)


@dataclass(frozen=True)
class VerifiedClaims:
    user_id: str


def issue_token(ctx: AuthContext, user_id: str, extended: bool = False) -> str:
    now = ctx.now()
    ttl = ctx.extended_session_ttl if extended else ctx.session_ttl
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, ctx.secret_key, algorithm=ctx.algorithm)


def verify_token(ctx: AuthContext, token: Optional[str]) -> VerifiedClaims:
    if not token:
        raise Unauthorized("No token, authorization denied")
    try:
        payload = jwt.decode(
            token,
            ctx.secret_key,
            algorithms=[ctx.algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as e:
        logger.debug("JWT decode failed: %s", e)
        raise Unauthorized()
    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise Unauthorized()
    return VerifiedClaims(user_id=user_id)


def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    ctx: AuthContext = Depends(get_auth_context),
) -> VerifiedClaims:
    return verify_token(ctx, credentials.credentials if credentials else None)


def create_oauth_state(ctx: AuthContext, keep_logged_in: bool) -> str:
    payload = {
        "purpose": OAUTH_STATE_PURPOSE,
        "nonce": secrets.token_urlsafe(16),
        "keep": keep_logged_in,
        "exp": ctx.now() + OAUTH_STATE_TTL,
    }
    return jwt.encode(payload, ctx.secret_key, algorithm=ctx.algorithm)


def read_oauth_state(ctx: AuthContext, state: Optional[str]) -> Optional[bool]:
    """Return the keep-logged-in flag carried by a valid state, or None if the state is missing or forged."""
    if not state:
        return None
    try:
        payload = jwt.decode(state, ctx.secret_key, algorithms=[ctx.algorithm])
    except jwt.PyJWTError as e:
        logger.debug("OAuth state rejected: %s", e)
        return None
    if payload.get("purpose") != OAUTH_STATE_PURPOSE:
        return None
    return bool(payload.get("keep"))
