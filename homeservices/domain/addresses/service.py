"""Address service - Business logic for customer addresses"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Address, Profile
from ...utils.sanitization import sanitize_dict
from .repository import AddressRepository
from .schemas import AddressCreate, AddressUpdate

logger = logging.getLogger(__name__)

TEXT_FIELDS = ["label", "address_line1", "address_line2", "city", "state", "country"]


class AddressService:
    """Service layer for address business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AddressRepository()

    def list_addresses(self, profile: Profile) -> list[Address]:
        return self.repo.get_by_user(self.db, profile.id)

    def _get_owned(self, profile: Profile, address_id: int) -> Address:
        address = self.repo.get_by_id(self.db, address_id, profile.id)
        if not address:
            raise HTTPException(status_code=404, detail="Address not found")
        return address

    def create_address(self, profile: Profile, data: AddressCreate) -> Address:
        payload = sanitize_dict(data.model_dump(), TEXT_FIELDS)

        # First address is always the default
        if self.repo.count_for_user(self.db, profile.id) == 0:
            payload["is_default"] = True
        elif payload.get("is_default"):
            self.repo.clear_default(self.db, profile.id)

        address = self.repo.create(self.db, profile.id, payload)
        logger.info(f"📍 Address {address.id} created for user {profile.id}")
        return address

    def update_address(self, profile: Profile, address_id: int, data: AddressUpdate) -> Address:
        address = self._get_owned(profile, address_id)
        payload = sanitize_dict(data.model_dump(exclude_unset=True), TEXT_FIELDS)
        return self.repo.update(self.db, address, payload)

    def delete_address(self, profile: Profile, address_id: int) -> None:
        address = self._get_owned(profile, address_id)
        if self.repo.has_active_booking(self.db, address.id):
            raise HTTPException(status_code=400, detail="Address is used by an active booking")

        was_default = address.is_default
        self.repo.delete(self.db, address)
        logger.info(f"🗑️ Address {address_id} deleted for user {profile.id}")

        if was_default:
            remaining = self.repo.get_by_user(self.db, profile.id)
            if remaining:
                self.repo.update(self.db, remaining[0], {"is_default": True})

    def set_default(self, profile: Profile, address_id: int) -> Address:
        address = self._get_owned(profile, address_id)
        self.repo.clear_default(self.db, profile.id)
        return self.repo.update(self.db, address, {"is_default": True})
