"""
Process-wide auth configuration, built once at startup from Settings and handed to
services explicitly. Nothing in here changes after startup.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable

from fastapi import Request

from app.config import Settings
from app.core.email_sender import SmtpMailer

JWT_ALGORITHM = "HS256"


def utcnow() -> datetime:
    return datetime.utcnow()


@dataclass(frozen=True)
class AuthContext:
    secret_key: str
    mailer: Any  # anything with send(to_email, subject, body)
    session_ttl: timedelta = timedelta(hours=1)
    extended_session_ttl: timedelta = timedelta(days=7)
    otp_ttl: timedelta = timedelta(minutes=10)
    otp_cooldown: timedelta = timedelta(seconds=30)
    require_verified_login: bool = True
    algorithm: str = JWT_ALGORITHM
    clock: Callable[[], datetime] = field(default=utcnow)

    def now(self) -> datetime:
        return self.clock()


def build_auth_context(settings: Settings) -> AuthContext:
    mailer = SmtpMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        user=settings.smtp_user,
        password=settings.smtp_password,
        from_addr=settings.email_from,
        timeout=settings.mail_timeout_seconds,
    )
    return AuthContext(
        secret_key=settings.auth_secret_key,
        mailer=mailer,
        session_ttl=timedelta(minutes=settings.session_token_minutes),
        extended_session_ttl=timedelta(days=settings.extended_session_days),
        otp_ttl=timedelta(minutes=settings.otp_ttl_minutes),
        otp_cooldown=timedelta(seconds=settings.otp_cooldown_seconds),
        require_verified_login=settings.require_verified_login,
    )


def get_auth_context(request: Request) -> AuthContext:
    return request.app.state.auth_context
