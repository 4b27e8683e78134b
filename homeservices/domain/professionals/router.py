"""Professional workspace router"""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from ...auth import require_professional
from ...database import get_db
from ...models import Profile
from ...schemas import MessageResponse
from .schemas import (
    BankAccountCreate,
    BankAccountResponse,
    DocumentResponse,
    OfferedServiceCreate,
    OfferedServiceResponse,
    OfferedServiceUpdate,
    ProfessionalProfileResponse,
    ProfessionalProfileUpdate,
    SlotCreate,
    SlotResponse,
)
from .service import ProfessionalWorkspaceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/professional", tags=["Professional"])


def get_workspace_service(db: Session = Depends(get_db)) -> ProfessionalWorkspaceService:
    return ProfessionalWorkspaceService(db)


# ============================================================================
# OFFERED SERVICES
# ============================================================================


@router.get("/services", response_model=list[OfferedServiceResponse])
async def list_offered_services(
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    return service.list_offerings(professional)


@router.post("/services", response_model=OfferedServiceResponse, status_code=201)
async def add_offered_service(
    data: OfferedServiceCreate,
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    return service.add_offering(professional, data)


@router.patch("/services/{offering_id}", response_model=OfferedServiceResponse)
async def update_offered_service(
    offering_id: int,
    data: OfferedServiceUpdate,
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    return service.update_offering(professional, offering_id, data)


@router.delete("/services/{offering_id}", response_model=MessageResponse)
async def remove_offered_service(
    offering_id: int,
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    service.remove_offering(professional, offering_id)
    return MessageResponse(message="Service removed")


# ============================================================================
# AVAILABILITY
# ============================================================================


@router.get("/slots", response_model=list[SlotResponse])
async def list_slots(
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    """Upcoming availability slots"""
    return service.list_slots(professional)


@router.post("/slots", response_model=SlotResponse, status_code=201)
async def create_slot(
    data: SlotCreate,
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    return service.create_slot(professional, data)


@router.delete("/slots/{slot_id}", response_model=MessageResponse)
async def delete_slot(
    slot_id: int,
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    service.delete_slot(professional, slot_id)
    return MessageResponse(message="Slot deleted")


# ============================================================================
# DOCUMENTS
# ============================================================================


@router.get("/documents", response_model=list[DocumentResponse])
async def list_documents(
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    return service.list_documents(professional)


@router.post("/documents", response_model=DocumentResponse, status_code=201)
async def upload_document(
    document_type: str = Form(...),
    file: UploadFile = File(...),
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    """Upload a verification document (PDF or image, up to 10MB)"""
    content = await file.read()
    logger.info(f"📤 Document upload from professional {professional.id}: {file.filename} ({len(content)} bytes)")
    return service.upload_document(professional, document_type, file.filename, content, file.content_type)


# ============================================================================
# BANK ACCOUNTS
# ============================================================================


@router.get("/bank-accounts", response_model=list[BankAccountResponse])
async def list_bank_accounts(
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    return service.list_bank_accounts(professional)


@router.post("/bank-accounts", response_model=BankAccountResponse, status_code=201)
async def add_bank_account(
    data: BankAccountCreate,
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    return service.add_bank_account(professional, data)


@router.post("/bank-accounts/{account_id}/primary", response_model=BankAccountResponse)
async def set_primary_bank_account(
    account_id: int,
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    return service.set_primary_bank_account(professional, account_id)


# ============================================================================
# PROFILE
# ============================================================================


@router.get("/profile", response_model=ProfessionalProfileResponse)
async def get_profile(professional: Profile = Depends(require_professional)):
    return professional


@router.patch("/profile", response_model=ProfessionalProfileResponse)
async def update_profile(
    data: ProfessionalProfileUpdate,
    professional: Profile = Depends(require_professional),
    service: ProfessionalWorkspaceService = Depends(get_workspace_service),
):
    return service.update_profile(professional, data)
