"""Payment repository - Database operations for payments"""

from typing import Optional

from sqlalchemy.orm import Session

from ...constants import BOOKING_COMPLETED
from ...models import Booking, Payment


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_by_booking(db: Session, booking_id: int) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.booking_id == booking_id).first()

    @staticmethod
    def get_by_transaction(db: Session, transaction_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.transaction_id == transaction_id).first()

    @staticmethod
    def list_for_customer(db: Session, customer_id: int) -> list[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.customer_id == customer_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .all()
        )

    @staticmethod
    def upsert_for_booking(db: Session, booking_id: int, customer_id: int, **fields) -> Payment:
        """One payment row per booking; later gateway events overwrite earlier ones"""
        payment = PaymentRepository.get_by_booking(db, booking_id)
        if not payment:
            payment = Payment(booking_id=booking_id, customer_id=customer_id, **fields)
            db.add(payment)
        else:
            for key, value in fields.items():
                setattr(payment, key, value)
        db.flush()
        return payment

    @staticmethod
    def completed_bookings_for_professional(db: Session, professional_id: int) -> list[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.professional_id == professional_id, Booking.status == BOOKING_COMPLETED)
            .all()
        )

    @staticmethod
    def paid_booking_ids(db: Session, booking_ids: list[int], status: str) -> set[int]:
        if not booking_ids:
            return set()
        rows = db.query(Payment.booking_id).filter(Payment.booking_id.in_(booking_ids), Payment.status == status).all()
        return {row[0] for row in rows}
