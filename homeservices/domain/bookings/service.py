"""Booking service - Business logic for the booking lifecycle"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import BOOKING_SERVICE_FEE
from ...constants import (
    BOOKING_CANCELLED,
    BOOKING_COMPLETED,
    BOOKING_PENDING,
    CUSTOMER_CANCELLABLE_STATUSES,
    PROFESSIONAL_TRANSITIONS,
    ROLE_ADMIN,
    ROLE_CUSTOMER,
    ROLE_PROFESSIONAL,
)
from ...models import Booking, Profile
from ...services import notification_service
from ...utils.sanitization import sanitize_string, validate_and_sanitize_input
from .repository import BookingRepository
from .schemas import BookingCreate, BookingResponse, BookingStatusUpdate

logger = logging.getLogger(__name__)


def build_booking_response(booking: Booking) -> BookingResponse:
    response = BookingResponse.model_validate(booking)
    response.service_name = booking.service.name if booking.service else None
    response.professional_name = booking.professional.full_name if booking.professional else None
    response.customer_name = booking.customer.full_name if booking.customer else None
    response.payment_status = booking.payment.status if booking.payment else None
    response.has_review = booking.review is not None
    return response


def release_booking_slots(db: Session, booking: Booking) -> None:
    """Return slots held by a booking to the available pool"""
    for slot in BookingRepository.get_slots_for_booking(db, booking.id):
        slot.status = "available"
        slot.booking_id = None


def apply_cancellation(db: Session, booking: Booking, reason: str) -> None:
    booking.status = BOOKING_CANCELLED
    booking.cancelled_at = datetime.utcnow()
    booking.cancellation_reason = reason
    release_booking_slots(db, booking)


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def create_booking(self, customer: Profile, data: BookingCreate) -> BookingResponse:
        service = self.repo.get_active_service(self.db, data.service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        total_amount = service.base_price
        offering = None
        if data.professional_id is not None:
            offering = self.repo.get_available_offering(self.db, data.professional_id, service.id)
            if not offering:
                raise HTTPException(status_code=400, detail="Professional is not available for this service")
            total_amount = offering.price

        if not self.repo.get_customer_address(self.db, data.address_id, customer.id):
            raise HTTPException(status_code=400, detail="Invalid address")

        if data.scheduled_at <= datetime.utcnow():
            raise HTTPException(status_code=400, detail="Booking must be scheduled in the future")

        slot = None
        if data.slot_id is not None:
            if data.professional_id is None:
                raise HTTPException(status_code=400, detail="A slot requires a professional")
            slot = self.repo.get_slot(self.db, data.slot_id)
            if not slot or slot.professional_id != data.professional_id or slot.status != "available":
                raise HTTPException(status_code=400, detail="Selected slot is not available")

        service_fee = BOOKING_SERVICE_FEE
        discount_amount = 0.0
        booking = Booking(
            customer_id=customer.id,
            professional_id=data.professional_id,
            service_id=service.id,
            professional_service_id=offering.id if offering else None,
            address_id=data.address_id,
            status=BOOKING_PENDING,
            scheduled_at=data.scheduled_at,
            total_amount=total_amount,
            service_fee=service_fee,
            discount_amount=discount_amount,
            final_amount=max(total_amount + service_fee - discount_amount, 0.0),
            special_instructions=sanitize_string(data.special_instructions),
        )

        try:
            self.repo.create(self.db, booking)
            if slot:
                slot.status = "booked"
                slot.booking_id = booking.id
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create booking for customer {customer.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create booking") from e

        logger.info(f"📅 Booking {booking.id} created by customer {customer.id} for service {service.id}")
        return build_booking_response(self.repo.get_by_id(self.db, booking.id))

    def list_bookings(self, profile: Profile, status: Optional[str] = None) -> list[BookingResponse]:
        if profile.role == ROLE_PROFESSIONAL:
            bookings = self.repo.list_for_professional(self.db, profile.id, status)
        else:
            bookings = self.repo.list_for_customer(self.db, profile.id, status)
        return [build_booking_response(b) for b in bookings]

    def _get_visible(self, profile: Profile, booking_id: int) -> Booking:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        allowed = (
            profile.role == ROLE_ADMIN
            or (profile.role == ROLE_CUSTOMER and booking.customer_id == profile.id)
            or (profile.role == ROLE_PROFESSIONAL and booking.professional_id == profile.id)
        )
        if not allowed:
            raise HTTPException(status_code=403, detail="Not authorized to view this booking")
        return booking

    def get_booking(self, profile: Profile, booking_id: int) -> BookingResponse:
        return build_booking_response(self._get_visible(profile, booking_id))

    def cancel_booking(self, customer: Profile, booking_id: int, reason: str) -> BookingResponse:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.customer_id != customer.id:
            raise HTTPException(status_code=403, detail="Not authorized to cancel this booking")
        if booking.status not in CUSTOMER_CANCELLABLE_STATUSES:
            raise HTTPException(status_code=400, detail=f"Cannot cancel a booking that is {booking.status}")

        try:
            clean_reason = validate_and_sanitize_input(reason)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        apply_cancellation(self.db, booking, clean_reason)
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"🚫 Booking {booking.id} cancelled by customer {customer.id}")
        return build_booking_response(booking)

    async def update_status(self, professional: Profile, booking_id: int, data: BookingStatusUpdate) -> BookingResponse:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.professional_id != professional.id:
            raise HTTPException(status_code=403, detail="Not authorized to update this booking")

        allowed = PROFESSIONAL_TRANSITIONS.get(booking.status, ())
        if data.status not in allowed:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot change booking status from {booking.status} to {data.status}",
            )

        previous = booking.status
        if data.status == BOOKING_CANCELLED:
            try:
                reason = validate_and_sanitize_input(data.reason or "") or "Cancelled by professional"
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
            apply_cancellation(self.db, booking, reason)
        else:
            booking.status = data.status
            if data.status == BOOKING_COMPLETED:
                booking.completed_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"🔄 Booking {booking.id} moved {previous} -> {booking.status} by professional {professional.id}")

        await notification_service.notify_booking_status(self.db, booking)
        return build_booking_response(booking)
