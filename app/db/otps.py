"""OTP store: pending one-time codes, newest first."""
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.db.models import OTPRecord


def create_otp(db: Session, user_id: str, code: str, created_at: datetime, expires_at: datetime) -> OTPRecord:
    record = OTPRecord(user_id=user_id, code=code, created_at=created_at, expires_at=expires_at)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def _newest_first(query):
    return query.order_by(OTPRecord.created_at.desc(), OTPRecord.id.desc())


def get_latest_otp(db: Session, user_id: str) -> Optional[OTPRecord]:
    return _newest_first(db.query(OTPRecord).filter(OTPRecord.user_id == user_id)).first()


def get_otp_created_since(db: Session, user_id: str, since: datetime) -> Optional[OTPRecord]:
    """Most recent record for the user created strictly after `since`."""
    return _newest_first(
        db.query(OTPRecord).filter(
            OTPRecord.user_id == user_id,
            OTPRecord.created_at > since,
        )
    ).first()


def delete_otp_if_exists(db: Session, otp_id: int) -> bool:
    """
    Conditional delete. Returns True only for the caller whose DELETE removed the row,
    so two requests racing on the same code cannot both consume it.
    """
    removed = (
        db.query(OTPRecord)
        .filter(OTPRecord.id == otp_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed == 1


def purge_expired_otps(db: Session, user_id: str, now: datetime) -> int:
    removed = (
        db.query(OTPRecord)
        .filter(OTPRecord.user_id == user_id, OTPRecord.expires_at <= now)
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed
