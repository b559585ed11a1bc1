from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Literal

from app.schemas.user import UserSummary

OtpAction = Literal["signup", "login"]


class EmailRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class RegisterRequest(EmailRequest):
    name: str = Field(min_length=1)


class SendOtpRequest(EmailRequest):
    action: OtpAction


class VerifyOtpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1)
    otp: str = Field(min_length=1)
    action: OtpAction
    keep_logged_in: bool = Field(False, alias="keepLoggedIn")

    @field_validator("otp", mode="before")
    @classmethod
    def numeric_otp_as_text(cls, value):
        # Clients may post the code as a JSON number
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class OtpSentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    user_id: str = Field(alias="userId")


class TokenResponse(BaseModel):
    token: str
    user: UserSummary
