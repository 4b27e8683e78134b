"""Professional workspace repository"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import (
    AvailabilitySlot,
    ProfessionalBankAccount,
    ProfessionalDocument,
    ProfessionalService,
    Service,
)


class ProfessionalRepository:
    """Repository for a professional's own services, slots, documents and bank accounts"""

    # Offered services
    @staticmethod
    def get_active_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id, Service.status == "active").first()

    @staticmethod
    def list_offerings(db: Session, professional_id: int) -> list[ProfessionalService]:
        return (
            db.query(ProfessionalService)
            .options(joinedload(ProfessionalService.service))
            .filter(ProfessionalService.professional_id == professional_id)
            .order_by(ProfessionalService.created_at.desc(), ProfessionalService.id.desc())
            .all()
        )

    @staticmethod
    def get_offering(db: Session, offering_id: int, professional_id: int) -> Optional[ProfessionalService]:
        return (
            db.query(ProfessionalService)
            .filter(ProfessionalService.id == offering_id, ProfessionalService.professional_id == professional_id)
            .first()
        )

    @staticmethod
    def get_offering_for_service(db: Session, professional_id: int, service_id: int) -> Optional[ProfessionalService]:
        return (
            db.query(ProfessionalService)
            .filter(
                ProfessionalService.professional_id == professional_id,
                ProfessionalService.service_id == service_id,
            )
            .first()
        )

    # Availability slots
    @staticmethod
    def list_upcoming_slots(db: Session, professional_id: int, now: datetime) -> list[AvailabilitySlot]:
        return (
            db.query(AvailabilitySlot)
            .filter(AvailabilitySlot.professional_id == professional_id, AvailabilitySlot.end_time >= now)
            .order_by(AvailabilitySlot.start_time)
            .all()
        )

    @staticmethod
    def get_slot(db: Session, slot_id: int, professional_id: int) -> Optional[AvailabilitySlot]:
        return (
            db.query(AvailabilitySlot)
            .filter(AvailabilitySlot.id == slot_id, AvailabilitySlot.professional_id == professional_id)
            .first()
        )

    @staticmethod
    def has_overlapping_slot(db: Session, professional_id: int, start: datetime, end: datetime) -> bool:
        return (
            db.query(AvailabilitySlot.id)
            .filter(
                AvailabilitySlot.professional_id == professional_id,
                AvailabilitySlot.start_time < end,
                AvailabilitySlot.end_time > start,
            )
            .first()
            is not None
        )

    # Documents
    @staticmethod
    def list_documents(db: Session, professional_id: int) -> list[ProfessionalDocument]:
        return (
            db.query(ProfessionalDocument)
            .filter(ProfessionalDocument.professional_id == professional_id)
            .order_by(ProfessionalDocument.created_at.desc(), ProfessionalDocument.id.desc())
            .all()
        )

    # Bank accounts
    @staticmethod
    def list_bank_accounts(db: Session, professional_id: int) -> list[ProfessionalBankAccount]:
        return (
            db.query(ProfessionalBankAccount)
            .filter(ProfessionalBankAccount.professional_id == professional_id)
            .order_by(ProfessionalBankAccount.is_primary.desc(), ProfessionalBankAccount.id)
            .all()
        )

    @staticmethod
    def get_bank_account(db: Session, account_id: int, professional_id: int) -> Optional[ProfessionalBankAccount]:
        return (
            db.query(ProfessionalBankAccount)
            .filter(
                ProfessionalBankAccount.id == account_id,
                ProfessionalBankAccount.professional_id == professional_id,
            )
            .first()
        )

    @staticmethod
    def clear_primary(db: Session, professional_id: int) -> None:
        db.query(ProfessionalBankAccount).filter(
            ProfessionalBankAccount.professional_id == professional_id,
            ProfessionalBankAccount.is_primary.is_(True),
        ).update({ProfessionalBankAccount.is_primary: False}, synchronize_session="fetch")

    @staticmethod
    def save(db: Session, obj):
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj
