"""Booking router - customer bookings and professional job updates"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_profile, require_customer, require_professional, require_role
from ...constants import ROLE_CUSTOMER, ROLE_PROFESSIONAL
from ...database import get_db
from ...models import Profile
from .schemas import BookingCancelRequest, BookingCreate, BookingResponse, BookingStatusUpdate
from .service import BookingService

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    customer: Profile = Depends(require_customer),
    service: BookingService = Depends(get_booking_service),
):
    return service.create_booking(customer, data)


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    status: Optional[str] = Query(None),
    profile: Profile = Depends(require_role(ROLE_CUSTOMER, ROLE_PROFESSIONAL)),
    service: BookingService = Depends(get_booking_service),
):
    """Customers see their own bookings, professionals see bookings assigned to them"""
    return service.list_bookings(profile, status)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    profile: Profile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_booking(profile, booking_id)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    data: BookingCancelRequest,
    customer: Profile = Depends(require_customer),
    service: BookingService = Depends(get_booking_service),
):
    return service.cancel_booking(customer, booking_id, data.reason)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    professional: Profile = Depends(require_professional),
    service: BookingService = Depends(get_booking_service),
):
    return await service.update_status(professional, booking_id, data)
