from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None


class UserProfile(UserSummary):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    is_verified: bool = Field(alias="isVerified")
