"""Address repository - Database operations for customer addresses"""

from typing import Optional

from sqlalchemy.orm import Session

from ...constants import ACTIVE_BOOKING_STATUSES
from ...models import Address, Booking


class AddressRepository:
    """Repository for address database operations"""

    @staticmethod
    def get_by_user(db: Session, user_id: int) -> list[Address]:
        return (
            db.query(Address)
            .filter(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at.desc(), Address.id.desc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, address_id: int, user_id: int) -> Optional[Address]:
        return db.query(Address).filter(Address.id == address_id, Address.user_id == user_id).first()

    @staticmethod
    def count_for_user(db: Session, user_id: int) -> int:
        return db.query(Address).filter(Address.user_id == user_id).count()

    @staticmethod
    def clear_default(db: Session, user_id: int) -> None:
        db.query(Address).filter(Address.user_id == user_id, Address.is_default.is_(True)).update(
            {Address.is_default: False}, synchronize_session="fetch"
        )

    @staticmethod
    def create(db: Session, user_id: int, data: dict) -> Address:
        address = Address(user_id=user_id, **data)
        db.add(address)
        db.commit()
        db.refresh(address)
        return address

    @staticmethod
    def update(db: Session, address: Address, data: dict) -> Address:
        for key, value in data.items():
            setattr(address, key, value)
        db.commit()
        db.refresh(address)
        return address

    @staticmethod
    def delete(db: Session, address: Address) -> None:
        db.delete(address)
        db.commit()

    @staticmethod
    def has_active_booking(db: Session, address_id: int) -> bool:
        return (
            db.query(Booking.id)
            .filter(Booking.address_id == address_id, Booking.status.in_(ACTIVE_BOOKING_STATUSES))
            .first()
            is not None
        )
