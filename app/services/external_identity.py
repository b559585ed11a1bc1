import logging

from sqlalchemy.orm import Session

from app.core.auth_utils import issue_token
from app.core.context import AuthContext
from app.db import users
from app.db.models import User
from app.services.google_oauth import ExternalProfile

logger = logging.getLogger(__name__)


def resolve_external_user(db: Session, profile: ExternalProfile) -> User:
    """Match by Google id, then by email (merging an OTP-registered account), else create a verified user."""
    user = users.get_user_by_google_id(db, profile.external_id)
    if user:
        return user

    user = users.get_user_by_email(db, profile.email)
    if user:
        return users.link_google_identity(db, user, profile.external_id, profile.name)

    return users.create_user(
        db,
        email=profile.email,
        name=profile.name,
        google_id=profile.external_id,
        is_verified=True,
    )


def external_login(db: Session, ctx: AuthContext, profile: ExternalProfile, keep_logged_in: bool = False):
    """Returns (token, user). Never touches OTP records."""
    user = resolve_external_user(db, profile)
    token = issue_token(ctx, user.id, extended=keep_logged_in)
    logger.info("External login for user %s", user.id)
    return token, user
