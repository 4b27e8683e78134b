"""Address router - customer address book"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_customer
from ...database import get_db
from ...models import Profile
from ...schemas import MessageResponse
from .schemas import AddressCreate, AddressResponse, AddressUpdate
from .service import AddressService

router = APIRouter(prefix="/addresses", tags=["Addresses"])


def get_address_service(db: Session = Depends(get_db)) -> AddressService:
    return AddressService(db)


@router.get("", response_model=list[AddressResponse])
async def list_addresses(
    profile: Profile = Depends(require_customer),
    service: AddressService = Depends(get_address_service),
):
    return service.list_addresses(profile)


@router.post("", response_model=AddressResponse, status_code=201)
async def create_address(
    data: AddressCreate,
    profile: Profile = Depends(require_customer),
    service: AddressService = Depends(get_address_service),
):
    return service.create_address(profile, data)


@router.patch("/{address_id}", response_model=AddressResponse)
async def update_address(
    address_id: int,
    data: AddressUpdate,
    profile: Profile = Depends(require_customer),
    service: AddressService = Depends(get_address_service),
):
    return service.update_address(profile, address_id, data)


@router.delete("/{address_id}", response_model=MessageResponse)
async def delete_address(
    address_id: int,
    profile: Profile = Depends(require_customer),
    service: AddressService = Depends(get_address_service),
):
    service.delete_address(profile, address_id)
    return MessageResponse(message="Address deleted")


@router.post("/{address_id}/default", response_model=AddressResponse)
async def set_default_address(
    address_id: int,
    profile: Profile = Depends(require_customer),
    service: AddressService = Depends(get_address_service),
):
    return service.set_default(profile, address_id)
