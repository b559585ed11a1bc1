"""
Domain errors for the auth flows. Services raise these; app.main renders them as JSON
with the status code attached to each class.
"""
from typing import Any, Dict


class AuthError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str = None, detail: str = None):
        self.message = message or self.default_message
        # Underlying cause; only rendered when DEBUG is on
        self.detail = detail
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message}


class BadRequest(AuthError):
    status_code = 400
    default_message = "Bad request"


class NotFound(AuthError):
    status_code = 404
    default_message = "User not found"


class AlreadyExists(AuthError):
    status_code = 400
    default_message = "User already exists"


class RateLimited(AuthError):
    """Cooldown still active. retry_after is whole seconds until the next request is allowed."""

    status_code = 429

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f"Please wait {retry_after} seconds before requesting another OTP")

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message, "retryAfter": self.retry_after}


class InvalidOrExpired(AuthError):
    status_code = 400
    default_message = "Invalid or expired OTP"


class Unauthorized(AuthError):
    status_code = 401
    default_message = "Token is not valid"


class DeliveryFailed(AuthError):
    status_code = 500
    default_message = "Failed to send email"


class ServerError(AuthError):
    status_code = 500
