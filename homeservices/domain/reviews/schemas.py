"""Review domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)


class ReviewResponse(BaseModel):
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
    customer_name: Optional[str] = None

    class Config:
        from_attributes = True
