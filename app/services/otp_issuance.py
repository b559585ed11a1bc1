"""
OTP issuance: resolve the user for the requested action, enforce the per-user cooldown,
store a fresh code and mail it.

Two requests for the same user arriving inside one cooldown window can both pass the
cooldown check before either stores its code. The cooldown throttles mail volume; it is
not a uniqueness guarantee, so that overlap is tolerated.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.context import AuthContext
from app.core.email_sender import send_otp_email
from app.core.errors import AlreadyExists, BadRequest, NotFound, RateLimited
from app.core.otp import cooldown_remaining_seconds, generate_otp
from app.db import otps, users
from app.db.models import User

logger = logging.getLogger(__name__)

ACTIONS = ("signup", "login")


def _check_action(action: str) -> None:
    if action not in ACTIONS:
        raise BadRequest("Email and valid action (signup or login) are required")


def _issue_for_user(db: Session, ctx: AuthContext, user: User, action: str) -> None:
    now = ctx.now()
    recent = otps.get_otp_created_since(db, user.id, now - ctx.otp_cooldown)
    if recent:
        remaining = cooldown_remaining_seconds(recent.created_at, now, ctx.otp_cooldown)
        logger.info("OTP request for user %s rate limited (%ss left)", user.id, remaining)
        raise RateLimited(remaining)

    otps.purge_expired_otps(db, user.id, now)
    code = generate_otp()
    otps.create_otp(db, user.id, code, created_at=now, expires_at=now + ctx.otp_ttl)
    logger.info("Issued %s OTP for user %s", action, user.id)

    # A failed send leaves the stored code in place; it simply expires unused.
    send_otp_email(
        ctx.mailer,
        user.email,
        code,
        action,
        valid_minutes=int(ctx.otp_ttl.total_seconds() // 60),
    )


def request_otp(db: Session, ctx: AuthContext, email: str, action: str, name: Optional[str] = None) -> str:
    """
    Issue and mail a code for `action`. Returns the user id.
    signup: the email must be new; an unverified user is created.
    login: the email must belong to an existing user.
    """
    if not email:
        raise BadRequest("Email and valid action (signup or login) are required")
    _check_action(action)

    user = users.get_user_by_email(db, email)
    if action == "signup":
        if user:
            raise AlreadyExists()
        user = users.create_user(db, email=email, name=name)
    elif not user:
        raise NotFound()

    _issue_for_user(db, ctx, user, action)
    return user.id


def register(db: Session, ctx: AuthContext, email: str, name: str) -> str:
    if not email or not name:
        raise BadRequest("Email and name are required")
    return request_otp(db, ctx, email, "signup", name=name)
