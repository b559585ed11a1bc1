
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # App
    app_name: str = "OTP Auth Service"
    debug: bool = False  # exposes exception text in 500 responses
    log_level: str = "INFO"

    # Database: any SQLAlchemy URL (sqlite:///./otp_auth.db for local runs)
    database_url: str

    # Session tokens (HS256)
    auth_secret_key: str
    session_token_minutes: int = 60
    extended_session_days: int = 7  # "keep me logged in" on login

    # One-time passcodes
    otp_ttl_minutes: int = 10
    otp_cooldown_seconds: int = 30
    # Login OTPs only succeed for accounts that finished signup verification
    require_verified_login: bool = True

    # Google OAuth
    google_client_id: str
    google_client_secret: str
    # OAuth redirect: set in production so redirect_uri matches exactly what is registered in the Google console
    public_base_url: Optional[str] = None
    # Where the browser lands after the OAuth callback (/dashboard on success, /signin on error)
    frontend_url: str = "http://localhost:3000"

    # Email (OTP delivery)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str
    smtp_password: str
    email_from: Optional[str] = None  # e.g. "Notes <noreply@yourdomain.com>"
    mail_timeout_seconds: int = 10

    class Config:
        env_file = ".env"


settings = Settings()
