"""
OTP verification: match the user's newest code, consume it, update verification state
and issue a session token.
"""
import logging
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_utils import issue_token
from app.core.context import AuthContext
from app.core.errors import BadRequest, InvalidOrExpired, NotFound, ServerError
from app.db import otps, users
from app.services.otp_issuance import ACTIONS

logger = logging.getLogger(__name__)


def user_summary(user) -> Dict[str, Any]:
    return {"id": user.id, "email": user.email, "name": user.name}


def verify_otp(
    db: Session,
    ctx: AuthContext,
    user_id: str,
    code: str,
    action: str,
    extended_session: bool = False,
) -> Dict[str, Any]:
    """Returns {"token", "user"} on success."""
    if not user_id or not code or action not in ACTIONS:
        raise BadRequest("userId, otp, and valid action (signup or login) are required")

    user = users.get_user_by_id(db, user_id)
    if not user:
        raise NotFound()

    record = otps.get_latest_otp(db, user.id)
    if not record or record.code != code or record.expires_at <= ctx.now():
        raise InvalidOrExpired()

    # Rejected before consuming, so the same code can still finish signup verification.
    if action == "login" and ctx.require_verified_login and not user.is_verified:
        raise BadRequest("Account not verified. Complete signup verification first")

    # Consume before anything else. Only the request whose DELETE removed the row continues.
    otp_id, uid = record.id, user.id
    try:
        consumed = otps.delete_otp_if_exists(db, otp_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to consume OTP %s for user %s: %s", otp_id, uid, e)
        raise ServerError("Server error")
    if not consumed:
        logger.info("OTP for user %s already consumed by a concurrent request", user.id)
        raise InvalidOrExpired()

    if action == "signup":
        users.mark_verified(db, user)

    token = issue_token(ctx, user.id, extended=action == "login" and extended_session)
    logger.info("OTP verified for user %s (%s)", user.id, action)
    return {"token": token, "user": user_summary(user)}
