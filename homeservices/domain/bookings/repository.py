"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...constants import ROLE_PROFESSIONAL
from ...models import Address, AvailabilitySlot, Booking, ProfessionalService, Profile, Service


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_by_id(db: Session, booking_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(
                joinedload(Booking.service),
                joinedload(Booking.professional),
                joinedload(Booking.customer),
                joinedload(Booking.payment),
                joinedload(Booking.review),
            )
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def list_for_customer(db: Session, customer_id: int, status: Optional[str] = None) -> list[Booking]:
        query = db.query(Booking).filter(Booking.customer_id == customer_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    @staticmethod
    def list_for_professional(db: Session, professional_id: int, status: Optional[str] = None) -> list[Booking]:
        query = db.query(Booking).filter(Booking.professional_id == professional_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    @staticmethod
    def get_active_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id, Service.status == "active").first()

    @staticmethod
    def get_available_offering(
        db: Session, professional_id: int, service_id: int
    ) -> Optional[ProfessionalService]:
        """Offering of the service by an active professional"""
        return (
            db.query(ProfessionalService)
            .join(Profile, Profile.id == ProfessionalService.professional_id)
            .filter(
                ProfessionalService.professional_id == professional_id,
                ProfessionalService.service_id == service_id,
                ProfessionalService.is_available.is_(True),
                Profile.role == ROLE_PROFESSIONAL,
                Profile.is_active.is_(True),
            )
            .first()
        )

    @staticmethod
    def get_customer_address(db: Session, address_id: int, customer_id: int) -> Optional[Address]:
        return db.query(Address).filter(Address.id == address_id, Address.user_id == customer_id).first()

    @staticmethod
    def get_slot(db: Session, slot_id: int) -> Optional[AvailabilitySlot]:
        return db.query(AvailabilitySlot).filter(AvailabilitySlot.id == slot_id).first()

    @staticmethod
    def get_slots_for_booking(db: Session, booking_id: int) -> list[AvailabilitySlot]:
        return db.query(AvailabilitySlot).filter(AvailabilitySlot.booking_id == booking_id).all()

    @staticmethod
    def create(db: Session, booking: Booking) -> Booking:
        db.add(booking)
        db.flush()
        return booking
