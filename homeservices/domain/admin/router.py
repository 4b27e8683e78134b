"""Admin router - moderation, disputes and reporting (admin role only)"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import Profile
from ...schemas import MessageResponse
from ..bookings.schemas import BookingResponse
from ..payments.schemas import PaymentResponse
from .audit import get_request_context
from .schemas import (
    AdminActionResponse,
    AdminBookingStatusUpdate,
    AdminCancelRequest,
    AdminReviewResponse,
    AdminServiceResponse,
    AdminUserDetailResponse,
    AdminUserResponse,
    AssignProfessionalRequest,
    DashboardStats,
    DisputeResponse,
    RefundRequest,
    RejectProfessionalRequest,
    ResolveDisputeRequest,
    ServiceCreate,
    ServiceUpdate,
)
from .service import AdminService

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_admin_service(
    request: Request,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AdminService:
    """Dependency injection for AdminService, bound to the acting admin and request origin"""
    return AdminService(db, admin, get_request_context(request))


# ============================================================================
# USERS
# ============================================================================


@router.get("/users", response_model=list[AdminUserResponse])
async def list_users(
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: AdminService = Depends(get_admin_service),
):
    return service.list_users(role, search, limit, offset)


@router.get("/users/{user_id}", response_model=AdminUserDetailResponse)
async def get_user(user_id: int, service: AdminService = Depends(get_admin_service)):
    return service.get_user(user_id)


@router.post("/users/{user_id}/suspend", response_model=AdminUserDetailResponse)
async def suspend_user(user_id: int, service: AdminService = Depends(get_admin_service)):
    return service.suspend_user(user_id)


@router.post("/users/{user_id}/activate", response_model=AdminUserDetailResponse)
async def activate_user(user_id: int, service: AdminService = Depends(get_admin_service)):
    return service.activate_user(user_id)


# ============================================================================
# PROFESSIONAL VERIFICATION
# ============================================================================


@router.get("/professionals/pending", response_model=list[AdminUserResponse])
async def list_pending_professionals(service: AdminService = Depends(get_admin_service)):
    return service.list_pending_professionals()


@router.post("/professionals/{professional_id}/approve", response_model=AdminUserDetailResponse)
async def approve_professional(professional_id: int, service: AdminService = Depends(get_admin_service)):
    return service.approve_professional(professional_id)


@router.post("/professionals/{professional_id}/reject", response_model=AdminUserDetailResponse)
async def reject_professional(
    professional_id: int,
    data: RejectProfessionalRequest,
    service: AdminService = Depends(get_admin_service),
):
    return service.reject_professional(professional_id, data.reason)


# ============================================================================
# SERVICES
# ============================================================================


@router.get("/services", response_model=list[AdminServiceResponse])
async def list_services(
    status: Optional[str] = Query(None),
    service: AdminService = Depends(get_admin_service),
):
    return service.list_services(status)


@router.post("/services", response_model=AdminServiceResponse, status_code=201)
async def create_service(data: ServiceCreate, service: AdminService = Depends(get_admin_service)):
    return service.create_service(data)


@router.patch("/services/{service_id}", response_model=AdminServiceResponse)
async def update_service(service_id: int, data: ServiceUpdate, service: AdminService = Depends(get_admin_service)):
    return service.update_service(service_id, data)


@router.delete("/services/{service_id}", response_model=MessageResponse)
async def delete_service(service_id: int, service: AdminService = Depends(get_admin_service)):
    service.delete_service(service_id)
    return MessageResponse(message="Service deleted")


# ============================================================================
# BOOKINGS
# ============================================================================


@router.get("/bookings", response_model=list[BookingResponse])
async def list_bookings(
    status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: AdminService = Depends(get_admin_service),
):
    return service.list_bookings(status, limit, offset)


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: int, service: AdminService = Depends(get_admin_service)):
    return service.get_booking(booking_id)


@router.patch("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    data: AdminBookingStatusUpdate,
    service: AdminService = Depends(get_admin_service),
):
    return service.update_booking_status(booking_id, data.status)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    data: AdminCancelRequest,
    service: AdminService = Depends(get_admin_service),
):
    return service.cancel_booking(booking_id, data.reason)


@router.post("/bookings/{booking_id}/assign", response_model=BookingResponse)
async def assign_professional(
    booking_id: int,
    data: AssignProfessionalRequest,
    service: AdminService = Depends(get_admin_service),
):
    return service.assign_professional(booking_id, data.professional_id)


# ============================================================================
# DISPUTES
# ============================================================================


@router.get("/disputes", response_model=list[DisputeResponse])
async def list_disputes(service: AdminService = Depends(get_admin_service)):
    """Cancelled and refunded bookings with their payments"""
    return service.list_disputes()


@router.post("/disputes/{booking_id}/refund", response_model=PaymentResponse)
async def process_refund(
    booking_id: int,
    data: RefundRequest,
    service: AdminService = Depends(get_admin_service),
):
    return await service.process_refund(booking_id, data.reason, data.amount)


@router.post("/disputes/{booking_id}/resolve", response_model=AdminActionResponse)
async def resolve_dispute(
    booking_id: int,
    data: ResolveDisputeRequest,
    service: AdminService = Depends(get_admin_service),
):
    return service.resolve_dispute(booking_id, data.resolution)


# ============================================================================
# REVIEWS
# ============================================================================


@router.get("/reviews", response_model=list[AdminReviewResponse])
async def list_reviews(
    visible: Optional[bool] = Query(None),
    service: AdminService = Depends(get_admin_service),
):
    return service.list_reviews(visible)


@router.post("/reviews/{review_id}/{action}", response_model=AdminReviewResponse)
async def moderate_review(
    review_id: int,
    action: Literal["approve", "reject", "hide", "show"],
    service: AdminService = Depends(get_admin_service),
):
    return service.moderate_review(review_id, action)


# ============================================================================
# REPORTING
# ============================================================================


@router.get("/payments", response_model=list[PaymentResponse])
async def list_payments(
    status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: AdminService = Depends(get_admin_service),
):
    return service.list_payments(status, limit, offset)


@router.get("/audit-log", response_model=list[AdminActionResponse])
async def list_audit_log(
    action_type: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: AdminService = Depends(get_admin_service),
):
    """Admin actions, newest first"""
    return service.list_audit_log(action_type, limit, offset)


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(service: AdminService = Depends(get_admin_service)):
    return service.dashboard_stats()
