import math
import secrets
from datetime import datetime, timedelta

OTP_MIN = 100000
OTP_MAX = 999999


def generate_otp() -> str:
    """6-digit numeric code, uniform over [100000, 999999]."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def cooldown_remaining_seconds(created_at: datetime, now: datetime, cooldown: timedelta) -> int:
    """Whole seconds until the next code may be issued: ceil((cooldown - elapsed) / 1s)."""
    elapsed_ms = (now - created_at) / timedelta(milliseconds=1)
    remaining_ms = cooldown / timedelta(milliseconds=1) - elapsed_ms
    upper = math.ceil(cooldown.total_seconds())
    return min(upper, max(1, math.ceil(remaining_ms / 1000)))
