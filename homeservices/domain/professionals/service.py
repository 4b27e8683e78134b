"""Professional workspace service - offered services, availability, documents, payouts and profile"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...constants import DOCUMENT_TYPES
from ...models import (
    AvailabilitySlot,
    ProfessionalBankAccount,
    ProfessionalDocument,
    ProfessionalService,
    Profile,
)
from ...security_utils import encrypt_value, mask_sensitive_data
from ...utils import storage
from ...utils.sanitization import sanitize_dict, sanitize_string
from .repository import ProfessionalRepository
from .schemas import (
    BankAccountCreate,
    BankAccountResponse,
    DocumentResponse,
    OfferedServiceCreate,
    OfferedServiceResponse,
    OfferedServiceUpdate,
    ProfessionalProfileUpdate,
    SlotCreate,
)

logger = logging.getLogger(__name__)


def build_offering_response(offering: ProfessionalService) -> OfferedServiceResponse:
    response = OfferedServiceResponse.model_validate(offering)
    if offering.service:
        response.service_name = offering.service.name
        response.category = offering.service.category
    return response


def build_bank_account_response(account: ProfessionalBankAccount) -> BankAccountResponse:
    return BankAccountResponse(
        id=account.id,
        account_holder_name=account.account_holder_name,
        masked_account_number=mask_sensitive_data("0" * 8 + account.account_number_last4),
        ifsc_code=account.ifsc_code,
        bank_name=account.bank_name,
        branch_name=account.branch_name,
        account_type=account.account_type,
        is_primary=account.is_primary,
        is_verified=account.is_verified,
        created_at=account.created_at,
    )


class ProfessionalWorkspaceService:
    """Service layer for a professional managing their own workspace"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProfessionalRepository()

    # ------------------------------------------------------------------
    # Offered services
    # ------------------------------------------------------------------

    def list_offerings(self, professional: Profile) -> list[OfferedServiceResponse]:
        return [build_offering_response(o) for o in self.repo.list_offerings(self.db, professional.id)]

    def add_offering(self, professional: Profile, data: OfferedServiceCreate) -> OfferedServiceResponse:
        if not self.repo.get_active_service(self.db, data.service_id):
            raise HTTPException(status_code=404, detail="Service not found")
        if self.repo.get_offering_for_service(self.db, professional.id, data.service_id):
            raise HTTPException(status_code=409, detail="You already offer this service")

        offering = ProfessionalService(professional_id=professional.id, **data.model_dump())
        try:
            self.repo.save(self.db, offering)
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="You already offer this service") from e

        logger.info(f"🧰 Professional {professional.id} now offers service {data.service_id}")
        return build_offering_response(offering)

    def update_offering(
        self, professional: Profile, offering_id: int, data: OfferedServiceUpdate
    ) -> OfferedServiceResponse:
        offering = self.repo.get_offering(self.db, offering_id, professional.id)
        if not offering:
            raise HTTPException(status_code=404, detail="Offered service not found")

        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(offering, key, value)
        self.repo.save(self.db, offering)
        return build_offering_response(offering)

    def remove_offering(self, professional: Profile, offering_id: int) -> None:
        offering = self.repo.get_offering(self.db, offering_id, professional.id)
        if not offering:
            raise HTTPException(status_code=404, detail="Offered service not found")
        self.db.delete(offering)
        self.db.commit()
        logger.info(f"🗑️ Professional {professional.id} removed offered service {offering_id}")

    # ------------------------------------------------------------------
    # Availability slots
    # ------------------------------------------------------------------

    def list_slots(self, professional: Profile) -> list[AvailabilitySlot]:
        return self.repo.list_upcoming_slots(self.db, professional.id, datetime.utcnow())

    def create_slot(self, professional: Profile, data: SlotCreate) -> AvailabilitySlot:
        if data.end_time <= data.start_time:
            raise HTTPException(status_code=400, detail="End time must be after start time")
        if data.start_time <= datetime.utcnow():
            raise HTTPException(status_code=400, detail="Slot must start in the future")
        if self.repo.has_overlapping_slot(self.db, professional.id, data.start_time, data.end_time):
            raise HTTPException(status_code=409, detail="Slot overlaps an existing slot")

        slot = AvailabilitySlot(
            professional_id=professional.id,
            start_time=data.start_time,
            end_time=data.end_time,
            status="available",
            is_recurring=data.is_recurring,
            recurrence_pattern=data.recurrence_pattern,
        )
        return self.repo.save(self.db, slot)

    def delete_slot(self, professional: Profile, slot_id: int) -> None:
        slot = self.repo.get_slot(self.db, slot_id, professional.id)
        if not slot:
            raise HTTPException(status_code=404, detail="Slot not found")
        if slot.status != "available":
            raise HTTPException(status_code=400, detail="Only available slots can be deleted")
        self.db.delete(slot)
        self.db.commit()

    # ------------------------------------------------------------------
    # Verification documents
    # ------------------------------------------------------------------

    def list_documents(self, professional: Profile) -> list[DocumentResponse]:
        documents = []
        for doc in self.repo.list_documents(self.db, professional.id):
            response = DocumentResponse.model_validate(doc)
            response.url = storage.generate_presigned_url(doc.file_key)
            documents.append(response)
        return documents

    def upload_document(
        self,
        professional: Profile,
        document_type: str,
        filename: Optional[str],
        content: bytes,
        mime_type: Optional[str],
    ) -> DocumentResponse:
        if document_type not in DOCUMENT_TYPES:
            raise HTTPException(
                status_code=400, detail=f"Document type must be one of: {', '.join(DOCUMENT_TYPES)}"
            )

        error = storage.validate_document(filename, len(content), mime_type)
        if error:
            raise HTTPException(status_code=400, detail=error)

        key = storage.build_document_key(professional.id, document_type, mime_type)
        try:
            storage.upload_document(key, content, mime_type)
        except storage.StorageError as e:
            raise HTTPException(status_code=502, detail="Failed to store document") from e

        document = ProfessionalDocument(
            professional_id=professional.id,
            document_type=document_type,
            document_name=sanitize_string(filename) or f"{document_type}",
            file_key=key,
            file_size=len(content),
            mime_type=mime_type,
            status="pending",
        )
        self.repo.save(self.db, document)
        logger.info(f"📄 Document {document.id} ({document_type}) uploaded by professional {professional.id}")

        response = DocumentResponse.model_validate(document)
        response.url = storage.generate_presigned_url(key)
        return response

    # ------------------------------------------------------------------
    # Bank accounts
    # ------------------------------------------------------------------

    def list_bank_accounts(self, professional: Profile) -> list[BankAccountResponse]:
        return [build_bank_account_response(a) for a in self.repo.list_bank_accounts(self.db, professional.id)]

    def add_bank_account(self, professional: Profile, data: BankAccountCreate) -> BankAccountResponse:
        is_first = not self.repo.list_bank_accounts(self.db, professional.id)
        account = ProfessionalBankAccount(
            professional_id=professional.id,
            account_holder_name=sanitize_string(data.account_holder_name),
            account_number_encrypted=encrypt_value(data.account_number),
            account_number_last4=data.account_number[-4:],
            ifsc_code=data.ifsc_code,
            bank_name=sanitize_string(data.bank_name),
            branch_name=sanitize_string(data.branch_name),
            account_type=data.account_type,
            is_primary=is_first,
        )
        self.repo.save(self.db, account)
        logger.info(f"🏦 Bank account {account.id} added for professional {professional.id}")
        return build_bank_account_response(account)

    def set_primary_bank_account(self, professional: Profile, account_id: int) -> BankAccountResponse:
        account = self.repo.get_bank_account(self.db, account_id, professional.id)
        if not account:
            raise HTTPException(status_code=404, detail="Bank account not found")
        self.repo.clear_primary(self.db, professional.id)
        account.is_primary = True
        self.repo.save(self.db, account)
        return build_bank_account_response(account)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def update_profile(self, professional: Profile, data: ProfessionalProfileUpdate) -> Profile:
        updates = sanitize_dict(data.model_dump(exclude_unset=True), ["full_name", "bio", "skills"])
        for key, value in updates.items():
            setattr(professional, key, value)
        self.db.commit()
        self.db.refresh(professional)
        return professional
