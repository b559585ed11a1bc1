"""
Auth API: OTP registration/login by email, Google login, and /auth/me.
Session tokens are returned in the body (OTP) or in the redirect query (Google) and are
sent back as `Authorization: Bearer <token>`.
"""
import json
import logging
from typing import Optional
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.core.auth_utils import VerifiedClaims, create_oauth_state, get_current_claims, read_oauth_state
from app.core.context import AuthContext, get_auth_context
from app.core.errors import AuthError, Unauthorized
from app.db import users
from app.db.database import get_db
from app.schemas.auth import OtpSentResponse, RegisterRequest, SendOtpRequest, TokenResponse, VerifyOtpRequest
from app.schemas.user import UserProfile
from app.services.external_identity import external_login
from app.services.google_oauth import (
    GoogleOAuthError,
    build_authorization_url,
    fetch_google_profile,
    get_redirect_uri,
)
from app.services.otp_issuance import register, request_otp
from app.services.otp_verification import user_summary, verify_otp

router = APIRouter()
logger = logging.getLogger(__name__)

EXTERNAL_LOGIN_FAILED = "Google authentication failed"


@router.post("/register", status_code=201, response_model=OtpSentResponse)
def register_user(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Create an unverified user and mail the signup OTP."""
    user_id = register(db, ctx, body.email, body.name)
    return {"message": "OTP sent to email", "userId": user_id}


@router.post("/otp/send", response_model=OtpSentResponse)
def send_otp(
    body: SendOtpRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    user_id = request_otp(db, ctx, body.email, body.action)
    return {"message": "OTP sent to email", "userId": user_id}


@router.post("/otp/verify", response_model=TokenResponse)
def verify(
    body: VerifyOtpRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return verify_otp(db, ctx, body.user_id, body.otp, body.action, extended_session=body.keep_logged_in)


def _frontend_redirect(path: str, params: dict) -> RedirectResponse:
    base = settings.frontend_url.rstrip("/")
    return RedirectResponse(url=f"{base}{path}?{urlencode(params, quote_via=quote)}", status_code=302)


def _external_error() -> RedirectResponse:
    return _frontend_redirect("/signin", {"error": EXTERNAL_LOGIN_FAILED})


@router.get("/external/start")
async def external_start(
    request: Request,
    keep_logged_in: bool = Query(False, alias="keepLoggedIn"),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Redirect the browser to Google's consent screen."""
    state = create_oauth_state(ctx, keep_logged_in)
    return RedirectResponse(url=build_authorization_url(get_redirect_uri(request), state), status_code=302)


@router.get("/external/callback")
async def external_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Exchange the code, find or create the user, and hand the token to the frontend."""
    if error:
        logger.warning("OAuth error from Google: %s", error)
        return _external_error()
    if not code:
        return _external_error()
    keep_logged_in = read_oauth_state(ctx, state)
    if keep_logged_in is None:
        logger.warning("OAuth callback with missing or invalid state")
        return _external_error()

    try:
        profile = await fetch_google_profile(code, get_redirect_uri(request))
    except GoogleOAuthError as e:
        logger.warning("Google login failed: %s", e)
        return _external_error()

    try:
        token, user = await run_in_threadpool(external_login, db, ctx, profile, keep_logged_in=keep_logged_in)
    except AuthError as e:
        logger.warning("Could not resolve Google user %s: %s", profile.email, e.message)
        return _external_error()
    return _frontend_redirect("/dashboard", {"token": token, "user": json.dumps(user_summary(user))})


@router.get("/me", response_model=UserProfile)
def me(
    claims: VerifiedClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    """Return the user the bearer token belongs to."""
    user = users.get_user_by_id(db, claims.user_id)
    if not user:
        raise Unauthorized("User not found")
    return {"id": user.id, "email": user.email, "name": user.name, "isVerified": user.is_verified}
