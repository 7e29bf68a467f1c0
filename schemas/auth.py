# Pydantic Schemas for authentication, sessions and profiles

from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional, List
from datetime import datetime

from schemas.marketplace import MemberResponse, MembershipTier


def _password_strength(v):
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters long')
    return v


class UserRegister(BaseModel):
    email: EmailStr
    password: str

    @validator('password')
    def password_strength(cls, v):
        return _password_strength(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str

    @validator('new_password')
    def password_strength(cls, v):
        return _password_strength(v)


class UserResponse(BaseModel):
    id: str
    email: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AuthPayload(BaseModel):
    """Access + refresh credential pair returned by register/login/refresh."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class SuccessResponse(BaseModel):
    success: bool = True


# ============================================================================
# PROFILE SCHEMAS
# ============================================================================

class ProfileCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=3, max_length=100)
    zipcode: str = Field(..., min_length=1, max_length=20)
    avatar_url: Optional[str] = Field(None, max_length=500)


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    username: Optional[str] = Field(None, min_length=3, max_length=100)
    zipcode: Optional[str] = Field(None, min_length=1, max_length=20)
    avatar_url: Optional[str] = Field(None, max_length=500)


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    zipcode: Optional[str] = None
    avatar_url: Optional[str] = None
    stars_balance: int
    tier: MembershipTier
    rating: float = 0.0
    rating_count: int = 0

    class Config:
        from_attributes = True


class PublicProfileResponse(BaseModel):
    username: Optional[str] = None
    first_name: Optional[str] = None
    avatar_url: Optional[str] = None
    tier: MembershipTier
    rating: float = 0.0
    rating_count: int = 0

    class Config:
        from_attributes = True


class MeResponse(BaseModel):
    user: UserResponse
    profile: Optional[ProfileResponse] = None
    memberships: List[MemberResponse] = []
