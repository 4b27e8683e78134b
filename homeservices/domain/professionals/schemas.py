"""Professional workspace schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import BANK_ACCOUNT_TYPES
from ...shared.validators import validate_ifsc
from ..bookings.schemas import to_naive_utc


# Offered services
class OfferedServiceCreate(BaseModel):
    service_id: int
    price: float = Field(..., gt=0)
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    is_available: bool = True


class OfferedServiceUpdate(BaseModel):
    price: Optional[float] = Field(None, gt=0)
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    is_available: Optional[bool] = None


class OfferedServiceResponse(BaseModel):
    id: int
    professional_id: int
    service_id: int
    price: float
    duration_minutes: Optional[int] = None
    is_available: bool
    service_name: Optional[str] = None
    category: Optional[str] = None

    class Config:
        from_attributes = True


# Availability
class SlotCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @field_validator("recurrence_pattern")
    @classmethod
    def validate_pattern(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in ("daily", "weekly"):
            raise ValueError("Recurrence pattern must be daily or weekly")
        return v


class SlotResponse(BaseModel):
    id: int
    professional_id: int
    start_time: datetime
    end_time: datetime
    status: str
    booking_id: Optional[int] = None
    is_recurring: bool
    recurrence_pattern: Optional[str] = None

    class Config:
        from_attributes = True


# Documents
class DocumentResponse(BaseModel):
    id: int
    document_type: str
    document_name: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    status: str
    rejection_reason: Optional[str] = None
    verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    url: Optional[str] = None

    class Config:
        from_attributes = True


# Bank accounts
class BankAccountCreate(BaseModel):
    account_holder_name: str = Field(..., min_length=1, max_length=255)
    account_number: str = Field(..., min_length=6, max_length=20)
    ifsc_code: str
    bank_name: str = Field(..., min_length=1, max_length=255)
    branch_name: Optional[str] = Field(None, max_length=255)
    account_type: str = "savings"

    @field_validator("account_number")
    @classmethod
    def validate_account_number(cls, v: str) -> str:
        v = v.replace(" ", "")
        if not v.isdigit():
            raise ValueError("Account number must contain only digits")
        return v

    @field_validator("ifsc_code")
    @classmethod
    def validate_ifsc_code(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("IFSC code is required")
        return validate_ifsc(v)

    @field_validator("account_type")
    @classmethod
    def validate_account_type(cls, v: str) -> str:
        if v not in BANK_ACCOUNT_TYPES:
            raise ValueError(f"Account type must be one of: {', '.join(BANK_ACCOUNT_TYPES)}")
        return v


class BankAccountResponse(BaseModel):
    id: int
    account_holder_name: str
    masked_account_number: str
    ifsc_code: str
    bank_name: str
    branch_name: Optional[str] = None
    account_type: str
    is_primary: bool
    is_verified: bool
    created_at: Optional[datetime] = None


# Profile
class ProfessionalProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = Field(None, max_length=2000)
    experience_years: Optional[int] = Field(None, ge=0, le=70)
    skills: Optional[list[str]] = None
    hourly_rate: Optional[float] = Field(None, ge=0)

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return v
        cleaned = [s.strip() for s in v if s and s.strip()]
        if len(cleaned) > 30:
            raise ValueError("At most 30 skills allowed")
        return cleaned


class ProfessionalProfileResponse(BaseModel):
    id: int
    role: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    is_verified: bool
    is_active: bool
    rating_average: float
    total_reviews: int
    experience_years: Optional[int] = None
    skills: Optional[list[str]] = None
    hourly_rate: Optional[float] = None

    class Config:
        from_attributes = True
