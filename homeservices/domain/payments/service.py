"""Payment service - Razorpay order creation, checkout verification and webhook reconciliation"""

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import (
    PAYMENT_CURRENCY,
    PROFESSIONAL_PAYOUT_SHARE,
    RAZORPAY_KEY_ID,
    RAZORPAY_KEY_SECRET,
)
from ...constants import (
    BOOKING_CONFIRMED,
    BOOKING_PENDING,
    BOOKING_REFUNDED,
    PAYMENT_COMPLETED,
    PAYMENT_FAILED,
    PAYMENT_PENDING,
    PAYMENT_PROCESSING,
    PAYMENT_REFUNDED,
)
from ...models import Booking, Payment, Profile
from ...services import notification_service, razorpay_service
from ...webhook_security import WebhookSignatureError, verify_checkout_signature
from .repository import PaymentRepository
from .schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    EarningsResponse,
    MonthlyEarnings,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = 0.01
GATEWAY_NAME = "razorpay"
SUCCESSFUL_GATEWAY_STATUSES = ("authorized", "captured")
# Statuses a later "authorized" event must not overwrite; refunded is final for every event
SETTLED_PAYMENT_STATUSES = (PAYMENT_COMPLETED, PAYMENT_REFUNDED)


def amounts_match(gateway_amount_paise: int, expected_amount: float) -> bool:
    return abs(razorpay_service.from_minor_units(gateway_amount_paise) - expected_amount) <= AMOUNT_TOLERANCE


def _parse_note_id(notes: dict[str, Any], key: str) -> Optional[int]:
    value = notes.get(key)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()

    def _get_customer_booking(self, customer: Profile, booking_id: int) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.customer_id != customer.id:
            raise HTTPException(status_code=403, detail="Not authorized to pay for this booking")
        return booking

    async def create_order(self, customer: Profile, data: CreateOrderRequest) -> CreateOrderResponse:
        booking = self._get_customer_booking(customer, data.booking_id)
        if booking.status != BOOKING_PENDING:
            raise HTTPException(status_code=400, detail=f"Cannot pay for a booking that is {booking.status}")
        if data.amount is not None and abs(data.amount - booking.final_amount) > AMOUNT_TOLERANCE:
            raise HTTPException(status_code=400, detail="Payment amount mismatch")

        existing = self.repo.get_by_booking(self.db, booking.id)
        if existing and existing.status in SETTLED_PAYMENT_STATUSES:
            raise HTTPException(status_code=400, detail="Booking is already paid")

        amount_paise = razorpay_service.to_minor_units(booking.final_amount)
        try:
            order = await razorpay_service.create_order(
                amount=amount_paise,
                receipt=razorpay_service.build_receipt(booking.public_id),
                notes={"booking_id": str(booking.id), "customer_id": str(customer.id)},
                currency=PAYMENT_CURRENCY,
            )
        except razorpay_service.PaymentGatewayError as e:
            logger.error(f"❌ Order creation failed for booking {booking.id}: {e.message}")
            raise HTTPException(status_code=502, detail="Failed to create payment order") from e

        self.repo.upsert_for_booking(
            self.db,
            booking.id,
            customer.id,
            amount=booking.final_amount,
            status=PAYMENT_PENDING,
            gateway_order_id=order["id"],
            payment_gateway=GATEWAY_NAME,
        )
        self.db.commit()

        logger.info(f"🧾 Razorpay order {order['id']} created for booking {booking.id}")
        return CreateOrderResponse(
            order_id=order["id"],
            amount=order.get("amount", amount_paise),
            currency=order.get("currency", PAYMENT_CURRENCY),
            key=RAZORPAY_KEY_ID,
            booking_id=booking.id,
        )

    async def verify_payment(self, customer: Profile, data: VerifyPaymentRequest) -> VerifyPaymentResponse:
        try:
            signature_ok = verify_checkout_signature(data.order_id, data.payment_id, data.signature, RAZORPAY_KEY_SECRET)
        except WebhookSignatureError as e:
            logger.error(f"❌ {e}")
            raise HTTPException(status_code=500, detail="Payment gateway is not configured") from e
        if not signature_ok:
            logger.warning(f"🚨 Invalid checkout signature for order {data.order_id}")
            raise HTTPException(status_code=400, detail="Invalid payment signature")

        booking = self._get_customer_booking(customer, data.booking_id)

        # The order must be the one issued for this booking by create-order
        existing = self.repo.get_by_booking(self.db, booking.id)
        if not existing or existing.gateway_order_id != data.order_id:
            logger.warning(f"🚨 Order {data.order_id} was not issued for booking {booking.id}")
            raise HTTPException(status_code=400, detail="Order does not belong to this booking")
        if existing.status == PAYMENT_REFUNDED:
            raise HTTPException(status_code=400, detail="Payment has already been refunded")

        claimed = self.repo.get_by_transaction(self.db, data.payment_id)
        if claimed and claimed.booking_id != booking.id:
            logger.warning(f"🚨 Payment {data.payment_id} already settles booking {claimed.booking_id}")
            raise HTTPException(status_code=400, detail="Payment is already linked to another booking")

        try:
            gateway_payment = await razorpay_service.fetch_payment(data.payment_id)
        except razorpay_service.PaymentGatewayError as e:
            raise HTTPException(status_code=502, detail="Failed to fetch payment details") from e

        gateway_order = gateway_payment.get("order_id")
        if gateway_order and gateway_order != data.order_id:
            raise HTTPException(status_code=400, detail="Payment does not belong to this order")

        if not amounts_match(int(gateway_payment.get("amount") or 0), booking.final_amount):
            logger.warning(
                f"🚨 Amount mismatch for booking {booking.id}: "
                f"gateway {gateway_payment.get('amount')} paise vs {booking.final_amount}"
            )
            raise HTTPException(status_code=400, detail="Payment amount mismatch")

        succeeded = gateway_payment.get("status") in SUCCESSFUL_GATEWAY_STATUSES
        payment = self.repo.upsert_for_booking(
            self.db,
            booking.id,
            customer.id,
            amount=booking.final_amount,
            status=PAYMENT_COMPLETED if succeeded else PAYMENT_FAILED,
            method=razorpay_service.map_method(gateway_payment.get("method")),
            gateway_order_id=data.order_id,
            transaction_id=data.payment_id,
            payment_gateway=GATEWAY_NAME,
            gateway_response=gateway_payment,
        )
        if succeeded and booking.status == BOOKING_PENDING:
            booking.status = BOOKING_CONFIRMED
        self.db.commit()
        self.db.refresh(booking)

        if succeeded:
            logger.info(f"✅ Payment {data.payment_id} verified for booking {booking.id}")
            await notification_service.notify_payment_confirmed(self.db, booking, booking.final_amount, data.payment_id)
            await notification_service.notify_booking_confirmed(self.db, booking)
        else:
            logger.warning(f"⚠️ Payment {data.payment_id} has gateway status {gateway_payment.get('status')}")

        return VerifyPaymentResponse(
            success=succeeded,
            status=payment.status,
            booking_id=booking.id,
            booking_status=booking.status,
            payment_id=data.payment_id,
        )

    async def handle_webhook(self, raw_body: bytes) -> None:
        """Apply a verified Razorpay webhook event. Safe to call repeatedly with the same event."""
        try:
            event = json.loads(raw_body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail="Invalid JSON payload") from e

        event_type = event.get("event")
        payload = event.get("payload") or {}
        logger.info(f"📨 Razorpay webhook event: {event_type}")

        if event_type in ("payment.authorized", "payment.captured"):
            entity = (payload.get("payment") or {}).get("entity") or {}
            self._apply_payment_event(event_type, entity)
        elif event_type in ("refund.created", "refund.processed"):
            entity = (payload.get("refund") or {}).get("entity") or {}
            self._apply_refund_event(entity)
        else:
            logger.info(f"ℹ️ Ignoring unhandled Razorpay event: {event_type}")

    def _apply_payment_event(self, event_type: str, entity: dict[str, Any]) -> None:
        notes = entity.get("notes") or {}
        booking_id = _parse_note_id(notes, "booking_id")
        customer_id = _parse_note_id(notes, "customer_id")
        if booking_id is None or customer_id is None:
            logger.warning(f"⚠️ Payment {entity.get('id')} has no booking notes, ignoring")
            return

        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            logger.warning(f"⚠️ Webhook references unknown booking {booking_id}")
            return

        captured = event_type == "payment.captured"
        existing = self.repo.get_by_booking(self.db, booking_id)
        if existing and existing.status == PAYMENT_REFUNDED:
            logger.info(f"ℹ️ Payment for booking {booking_id} is refunded, ignoring {event_type}")
            return
        status = PAYMENT_COMPLETED if captured else PAYMENT_PROCESSING
        if not captured and existing and existing.status in SETTLED_PAYMENT_STATUSES:
            status = existing.status

        self.repo.upsert_for_booking(
            self.db,
            booking_id,
            customer_id,
            amount=razorpay_service.from_minor_units(int(entity.get("amount") or 0)),
            status=status,
            method=razorpay_service.map_method(entity.get("method")),
            gateway_order_id=entity.get("order_id"),
            transaction_id=entity.get("id"),
            payment_gateway=GATEWAY_NAME,
            gateway_response=entity,
        )
        if captured and booking.status == BOOKING_PENDING:
            booking.status = BOOKING_CONFIRMED
        self.db.commit()
        logger.info(f"✅ Webhook {event_type} applied to booking {booking_id} (payment {status})")

    def _apply_refund_event(self, entity: dict[str, Any]) -> None:
        payment_id = entity.get("payment_id")
        payment = self.repo.get_by_transaction(self.db, payment_id) if payment_id else None
        if not payment:
            logger.warning(f"⚠️ Refund {entity.get('id')} references unknown payment {payment_id}")
            return

        notes = entity.get("notes") or {}
        payment.refund_amount = razorpay_service.from_minor_units(int(entity.get("amount") or 0))
        payment.refund_reason = notes.get("reason") or "Refund processed"
        payment.refunded_at = datetime.utcnow()
        payment.status = PAYMENT_REFUNDED

        booking = self.repo.get_booking(self.db, payment.booking_id)
        if booking:
            booking.status = BOOKING_REFUNDED
        self.db.commit()
        logger.info(f"💸 Refund recorded for payment {payment_id}")

    def list_payments(self, customer: Profile) -> list[Payment]:
        return self.repo.list_for_customer(self.db, customer.id)

    def get_earnings(self, professional: Profile, now: Optional[datetime] = None) -> EarningsResponse:
        now = now or datetime.utcnow()
        bookings = self.repo.completed_bookings_for_professional(self.db, professional.id)
        paid_ids = self.repo.paid_booking_ids(self.db, [b.id for b in bookings], PAYMENT_COMPLETED)

        def share(booking: Booking) -> float:
            return booking.final_amount * PROFESSIONAL_PAYOUT_SHARE

        total = sum(share(b) for b in bookings)
        monthly = sum(
            share(b)
            for b in bookings
            if b.completed_at and b.completed_at.year == now.year and b.completed_at.month == now.month
        )
        week_start = now - timedelta(days=7)
        weekly = sum(share(b) for b in bookings if b.completed_at and b.completed_at >= week_start)
        pending = sum(share(b) for b in bookings if b.id not in paid_ids)

        breakdown = []
        year, month = now.year, now.month
        for _ in range(6):
            earnings = sum(
                share(b)
                for b in bookings
                if b.completed_at and b.completed_at.year == year and b.completed_at.month == month
            )
            breakdown.append(MonthlyEarnings(month=f"{year:04d}-{month:02d}", earnings=round(earnings, 2)))
            month -= 1
            if month == 0:
                year, month = year - 1, 12
        breakdown.reverse()

        return EarningsResponse(
            completed_jobs=len(bookings),
            total_earnings=round(total, 2),
            monthly_earnings=round(monthly, 2),
            weekly_earnings=round(weekly, 2),
            average_earning_per_job=round(total / len(bookings), 2) if bookings else 0.0,
            pending_payouts=round(pending, 2),
            monthly_breakdown=breakdown,
        )
