"""Admin domain schemas"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import BOOKING_STATUSES, SERVICE_STATUSES


class AdminUserResponse(BaseModel):
    id: int
    role: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    is_verified: bool
    is_active: bool
    rating_average: float
    total_reviews: int
    created_at: Optional[datetime] = None


class AdminUserDetailResponse(AdminUserResponse):
    bio: Optional[str] = None
    experience_years: Optional[int] = None
    last_sign_in_at: Optional[datetime] = None
    booking_count: int = 0
    document_count: int = 0


class RejectProfessionalRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    category: str = Field(..., min_length=1, max_length=100)
    subcategory: Optional[str] = Field(None, max_length=100)
    base_price: float = Field(..., gt=0)
    duration_minutes: int = Field(60, gt=0, le=24 * 60)
    image_url: Optional[str] = Field(None, max_length=500)
    status: str = "active"

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in SERVICE_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(SERVICE_STATUSES)}")
        return v


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    subcategory: Optional[str] = Field(None, max_length=100)
    base_price: Optional[float] = Field(None, gt=0)
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    image_url: Optional[str] = Field(None, max_length=500)
    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in SERVICE_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(SERVICE_STATUSES)}")
        return v


class AdminServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    base_price: float
    duration_minutes: int
    image_url: Optional[str] = None
    status: str
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminBookingStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in BOOKING_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(BOOKING_STATUSES)}")
        return v


class AdminCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class AssignProfessionalRequest(BaseModel):
    professional_id: int


class RefundRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
    amount: Optional[float] = Field(None, gt=0)


class ResolveDisputeRequest(BaseModel):
    resolution: str = Field(..., min_length=1, max_length=1000)


class DisputeResponse(BaseModel):
    booking_id: int
    booking_status: str
    customer_id: int
    professional_id: Optional[int] = None
    service_name: Optional[str] = None
    final_amount: float
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    payment_id: Optional[int] = None
    payment_status: Optional[str] = None
    payment_amount: Optional[float] = None
    refund_amount: Optional[float] = None
    transaction_id: Optional[str] = None


class AdminReviewResponse(BaseModel):
    id: int
    booking_id: int
    customer_id: int
    professional_id: Optional[int] = None
    service_id: int
    rating: int
    comment: Optional[str] = None
    is_verified: bool
    is_visible: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminActionResponse(BaseModel):
    id: int
    admin_id: int
    action_type: str
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias="action_metadata")
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DashboardStats(BaseModel):
    users_by_role: dict[str, int]
    total_users: int
    bookings_by_status: dict[str, int]
    total_bookings: int
    total_revenue: float
    pending_verifications: int
