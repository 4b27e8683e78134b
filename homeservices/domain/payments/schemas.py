"""Payment domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CreateOrderRequest(BaseModel):
    booking_id: int
    amount: Optional[float] = Field(None, gt=0)


class CreateOrderResponse(BaseModel):
    order_id: str
    amount: int  # paise
    currency: str
    key: Optional[str] = None
    booking_id: int


class VerifyPaymentRequest(BaseModel):
    order_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)
    booking_id: int


class VerifyPaymentResponse(BaseModel):
    success: bool
    status: str
    booking_id: int
    booking_status: str
    payment_id: str


class PaymentResponse(BaseModel):
    id: int
    booking_id: int
    customer_id: int
    amount: float
    status: str
    method: Optional[str] = None
    gateway_order_id: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_gateway: Optional[str] = None
    refund_amount: Optional[float] = None
    refund_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MonthlyEarnings(BaseModel):
    month: str  # YYYY-MM
    earnings: float


class EarningsResponse(BaseModel):
    completed_jobs: int
    total_earnings: float
    monthly_earnings: float
    weekly_earnings: float
    average_earning_per_job: float
    pending_payouts: float
    monthly_breakdown: list[MonthlyEarnings]


class WebhookAck(BaseModel):
    received: bool = True
