from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .constants import SELF_SERVICE_ROLES, USER_ROLES
from .shared.validators import normalize_indian_phone, validate_email


class SignUpRequest(BaseModel):
    email: str
    password: str
    full_name: str = Field(..., min_length=1, max_length=255)
    role: str = "customer"
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v not in SELF_SERVICE_ROLES:
            raise ValueError(f"Role must be one of: {', '.join(SELF_SERVICE_ROLES)}")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return normalize_indian_phone(v)
        return v


class SignInRequest(BaseModel):
    email: str
    password: str
    redirect_to: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)


class AuthSessionResponse(BaseModel):
    success: bool = True
    user_id: int
    role: Optional[str]
    redirect_path: str
    access_token: str
    token_type: str = "bearer"


class OtpSendRequest(BaseModel):
    phone: str


class OtpSendResponse(BaseModel):
    success: bool
    message: str
    expires_in: int  # seconds


class OtpVerifyRequest(BaseModel):
    phone: str
    otp: str
    role: Optional[str] = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v is not None and v not in SELF_SERVICE_ROLES:
            raise ValueError(f"Role must be one of: {', '.join(SELF_SERVICE_ROLES)}")
        return v


class OtpSessionRequest(BaseModel):
    access_token: Optional[str] = None


class ProfileResponse(BaseModel):
    id: int
    role: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    is_verified: bool
    is_active: bool
    rating_average: float = 0.0
    total_reviews: int = 0
    experience_years: Optional[int] = None
    skills: Optional[list[str]] = None
    hourly_rate: Optional[float] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CurrentUserResponse(BaseModel):
    id: int
    email: str
    phone: Optional[str] = None
    role: Optional[str] = None
    redirect_path: str
    profile: Optional[ProfileResponse] = None


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=2000)
    date_of_birth: Optional[datetime] = None
    experience_years: Optional[int] = Field(None, ge=0, le=80)
    skills: Optional[list[str]] = None
    hourly_rate: Optional[float] = Field(None, ge=0)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return normalize_indian_phone(v)
        return v


class RouteAccessResponse(BaseModel):
    path: str
    allowed: bool
    redirect: Optional[str] = None
    role: Optional[str] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


def validate_user_role(v: Optional[str]) -> Optional[str]:
    """Shared validator for admin filters that accept any role"""
    if v is not None and v not in USER_ROLES:
        raise ValueError(f"Role must be one of: {', '.join(USER_ROLES)}")
    return v
