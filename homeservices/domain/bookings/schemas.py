"""Booking domain schemas"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import BOOKING_STATUSES


def to_naive_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC"""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class BookingCreate(BaseModel):
    service_id: int
    professional_id: Optional[int] = None
    address_id: int
    scheduled_at: datetime
    slot_id: Optional[int] = None
    special_instructions: Optional[str] = Field(None, max_length=1000)

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class BookingCancelRequest(BaseModel):
    reason: str = Field(..., max_length=500)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Cancellation reason is required")
        return v.strip()


class BookingStatusUpdate(BaseModel):
    status: str
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in BOOKING_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(BOOKING_STATUSES)}")
        return v


class BookingResponse(BaseModel):
    id: int
    public_id: str
    customer_id: int
    professional_id: Optional[int] = None
    service_id: int
    professional_service_id: Optional[int] = None
    address_id: Optional[int] = None
    status: str
    scheduled_at: datetime
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    total_amount: float
    service_fee: float
    discount_amount: float
    final_amount: float
    special_instructions: Optional[str] = None
    created_at: Optional[datetime] = None
    service_name: Optional[str] = None
    professional_name: Optional[str] = None
    customer_name: Optional[str] = None
    payment_status: Optional[str] = None
    has_review: bool = False

    class Config:
        from_attributes = True
