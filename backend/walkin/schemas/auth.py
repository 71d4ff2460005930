"""
Pydantic models for signup, signin and profile endpoints
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SignUpRequest(BaseModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., max_length=128)
    name: str = Field(..., max_length=100)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "email": "kim@example.com",
            "password": "walkin2024",
            "name": "김철수"
        }
    })


class SignInRequest(BaseModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., max_length=128)


class UserResponse(BaseModel):
    """Public view of a user account"""
    uid: str
    email: str
    name: str
    role: Literal["employee", "admin"]
    kakao_id: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: datetime
    last_login_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse
    weak_password: bool = Field(
        default=False,
        description="The password used does not meet the current password rules"
    )


class ProfileUpdateRequest(BaseModel):
    """Users can only change their name and profile image"""
    name: Optional[str] = Field(None, max_length=100)
    profile_image: Optional[str] = Field(None, max_length=2048)


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(..., max_length=128)
    new_password: str = Field(..., max_length=128)
    confirm_password: str = Field(..., max_length=128)
