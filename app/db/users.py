"""Credential store: lookups and mutations on User rows."""
import logging
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AlreadyExists
from app.db.models import User

logger = logging.getLogger(__name__)


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_user_by_google_id(db: Session, google_id: str) -> Optional[User]:
    return db.query(User).filter(User.google_id == google_id).first()


def create_user(
    db: Session,
    email: str,
    name: Optional[str] = None,
    google_id: Optional[str] = None,
    is_verified: bool = False,
) -> User:
    """
    Insert a new user. The unique index on email is the final word on duplicates:
    a concurrent insert that loses surfaces as AlreadyExists.
    """
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        name=name,
        google_id=google_id,
        is_verified=is_verified,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyExists()
    db.refresh(user)
    logger.info("Created user %s (verified=%s)", user.id, is_verified)
    return user


def mark_verified(db: Session, user: User) -> User:
    if not user.is_verified:
        user.is_verified = True
        db.commit()
        db.refresh(user)
    return user


def link_google_identity(db: Session, user: User, google_id: str, name: Optional[str]) -> User:
    """Attach a Google account to an existing user; Google has verified the email, so the user is too."""
    user.google_id = google_id
    user.is_verified = True
    if not user.name and name:
        user.name = name
    db.commit()
    db.refresh(user)
    logger.info("Linked Google identity to user %s", user.id)
    return user
