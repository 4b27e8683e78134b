"""Payment router - Razorpay checkout, webhook and payment history"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ...auth import require_customer, require_professional
from ...config import RAZORPAY_WEBHOOK_SECRET
from ...database import get_db
from ...models import Profile
from ...webhook_security import verify_razorpay_webhook
from .schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    EarningsResponse,
    PaymentResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookAck,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


@router.post("/create-order", response_model=CreateOrderResponse)
async def create_order(
    data: CreateOrderRequest,
    customer: Profile = Depends(require_customer),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.create_order(customer, data)


@router.post("/verify", response_model=VerifyPaymentResponse)
async def verify_payment(
    data: VerifyPaymentRequest,
    customer: Profile = Depends(require_customer),
    service: PaymentService = Depends(get_payment_service),
):
    """Verify a Checkout callback and record the payment"""
    return await service.verify_payment(customer, data)


@router.post("/webhook", response_model=WebhookAck)
async def razorpay_webhook(request: Request, service: PaymentService = Depends(get_payment_service)):
    """
    Razorpay webhook receiver.
    The signature covers the raw body, so it is verified before any parsing.
    """
    raw_body = await verify_razorpay_webhook(request, RAZORPAY_WEBHOOK_SECRET)

    try:
        await service.handle_webhook(raw_body)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Razorpay webhook processing failed: {str(e)}")
        service.db.rollback()
        raise HTTPException(status_code=500, detail="Webhook processing failed") from e

    return WebhookAck(received=True)


@router.get("", response_model=list[PaymentResponse])
async def list_payments(
    customer: Profile = Depends(require_customer),
    service: PaymentService = Depends(get_payment_service),
):
    return service.list_payments(customer)


@router.get("/earnings", response_model=EarningsResponse)
async def get_earnings(
    professional: Profile = Depends(require_professional),
    service: PaymentService = Depends(get_payment_service),
):
    return service.get_earnings(professional)
