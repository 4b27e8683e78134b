"""Admin service - Moderation, refunds and reporting. Every mutation is written to the audit trail."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...constants import (
    ACTION_BOOKING_CANCELLED,
    ACTION_OTHER,
    ACTION_PAYMENT_REFUNDED,
    ACTION_SERVICE_CREATED,
    ACTION_SERVICE_DELETED,
    ACTION_SERVICE_UPDATED,
    ACTION_USER_ACTIVATED,
    ACTION_USER_SUSPENDED,
    BOOKING_COMPLETED,
    BOOKING_CONFIRMED,
    BOOKING_REFUNDED,
    PAYMENT_COMPLETED,
    PAYMENT_REFUNDED,
    ROLE_ADMIN,
)
from ...models import AdminAction, Payment, Profile, Review, Service
from ...services import razorpay_service
from ...utils.sanitization import sanitize_dict, sanitize_string
from ..bookings.schemas import BookingResponse
from ..bookings.service import apply_cancellation, build_booking_response
from ..reviews.repository import recompute_professional_rating
from .audit import RequestContext, record_admin_action
from .repository import AdminRepository
from .schemas import (
    AdminUserDetailResponse,
    AdminUserResponse,
    DashboardStats,
    DisputeResponse,
    ServiceCreate,
    ServiceUpdate,
)

logger = logging.getLogger(__name__)

SERVICE_TEXT_FIELDS = ["name", "description", "category", "subcategory"]


def build_user_response(profile: Profile, email: Optional[str]) -> AdminUserResponse:
    return AdminUserResponse(
        id=profile.id,
        role=profile.role,
        full_name=profile.full_name,
        phone=profile.phone,
        email=email,
        is_verified=profile.is_verified,
        is_active=profile.is_active,
        rating_average=profile.rating_average,
        total_reviews=profile.total_reviews,
        created_at=profile.created_at,
    )


class AdminService:
    """Service layer for admin business logic"""

    def __init__(self, db: Session, admin: Profile, context: RequestContext):
        self.db = db
        self.admin = admin
        self.context = context
        self.repo = AdminRepository()

    def _audit(self, action_type: str, target_type: str, target_id, description: str, metadata: Optional[dict] = None):
        return record_admin_action(
            self.db,
            self.admin,
            action_type,
            self.context,
            target_type=target_type,
            target_id=target_id,
            description=description,
            metadata=metadata,
        )

    # ========================================================================
    # USERS
    # ========================================================================

    def list_users(
        self, role: Optional[str] = None, search: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> list[AdminUserResponse]:
        rows = self.repo.list_users(self.db, role, search.strip() if search else None, limit, offset)
        return [build_user_response(profile, email) for profile, email in rows]

    def get_user(self, user_id: int) -> AdminUserDetailResponse:
        profile = self.repo.get_profile(self.db, user_id)
        if not profile:
            raise HTTPException(status_code=404, detail="User not found")
        user = self.repo.get_auth_user(self.db, user_id)

        base = build_user_response(profile, user.email if user else None)
        return AdminUserDetailResponse(
            **base.model_dump(),
            bio=profile.bio,
            experience_years=profile.experience_years,
            last_sign_in_at=user.last_sign_in_at if user else None,
            booking_count=self.repo.count_bookings_for_profile(self.db, profile.id),
            document_count=self.repo.count_documents(self.db, profile.id),
        )

    def suspend_user(self, user_id: int) -> AdminUserResponse:
        profile = self.repo.get_profile(self.db, user_id)
        if not profile:
            raise HTTPException(status_code=404, detail="User not found")
        if profile.role == ROLE_ADMIN:
            raise HTTPException(status_code=400, detail="Admin accounts cannot be suspended")

        profile.is_active = False
        self._audit(ACTION_USER_SUSPENDED, "user", profile.id, f"Suspended user: {profile.id}")
        self.db.commit()
        logger.warning(f"🚫 User {profile.id} suspended by admin {self.admin.id}")
        return self.get_user(profile.id)

    def activate_user(self, user_id: int) -> AdminUserResponse:
        profile = self.repo.get_profile(self.db, user_id)
        if not profile:
            raise HTTPException(status_code=404, detail="User not found")

        profile.is_active = True
        self._audit(ACTION_USER_ACTIVATED, "user", profile.id, f"Activated user: {profile.id}")
        self.db.commit()
        logger.info(f"✅ User {profile.id} activated by admin {self.admin.id}")
        return self.get_user(profile.id)

    # ========================================================================
    # PROFESSIONAL VERIFICATION
    # ========================================================================

    def list_pending_professionals(self) -> list[AdminUserResponse]:
        return [build_user_response(p, email) for p, email in self.repo.list_pending_professionals(self.db)]

    def approve_professional(self, professional_id: int) -> AdminUserResponse:
        professional = self.repo.get_professional(self.db, professional_id)
        if not professional:
            raise HTTPException(status_code=404, detail="Professional not found")

        professional.is_verified = True
        professional.is_active = True
        now = datetime.utcnow()
        for doc in self.repo.pending_documents(self.db, professional.id):
            doc.status = "approved"
            doc.verified_by = self.admin.id
            doc.verified_at = now

        self._audit(ACTION_USER_ACTIVATED, "user", professional.id, f"Approved professional: {professional.id}")
        self.db.commit()
        logger.info(f"✅ Professional {professional.id} approved by admin {self.admin.id}")
        return self.get_user(professional.id)

    def reject_professional(self, professional_id: int, reason: Optional[str]) -> AdminUserResponse:
        professional = self.repo.get_professional(self.db, professional_id)
        if not professional:
            raise HTTPException(status_code=404, detail="Professional not found")

        clean_reason = sanitize_string(reason) if reason else None
        professional.is_verified = False
        professional.is_active = False
        now = datetime.utcnow()
        for doc in self.repo.pending_documents(self.db, professional.id):
            doc.status = "rejected"
            doc.rejection_reason = clean_reason
            doc.verified_by = self.admin.id
            doc.verified_at = now

        self._audit(
            ACTION_USER_SUSPENDED,
            "user",
            professional.id,
            f"Rejected professional: {professional.id}. Reason: {clean_reason or 'Not specified'}",
        )
        self.db.commit()
        logger.warning(f"❌ Professional {professional.id} rejected by admin {self.admin.id}")
        return self.get_user(professional.id)

    # ========================================================================
    # SERVICES
    # ========================================================================

    def list_services(self, status: Optional[str] = None) -> list[Service]:
        return self.repo.list_services(self.db, status)

    def create_service(self, data: ServiceCreate) -> Service:
        service = Service(**sanitize_dict(data.model_dump(), SERVICE_TEXT_FIELDS), created_by=self.admin.id)
        self.db.add(service)
        self.db.flush()
        self._audit(ACTION_SERVICE_CREATED, "service", service.id, f"Created service: {service.name}")
        self.db.commit()
        self.db.refresh(service)
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        changes = sanitize_dict(data.model_dump(exclude_unset=True), SERVICE_TEXT_FIELDS)
        for key, value in changes.items():
            setattr(service, key, value)
        self._audit(
            ACTION_SERVICE_UPDATED,
            "service",
            service.id,
            f"Updated service: {service.name}",
            metadata={"fields": sorted(changes.keys())},
        )
        self.db.commit()
        self.db.refresh(service)
        return service

    def delete_service(self, service_id: int) -> None:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        if self.repo.service_has_active_bookings(self.db, service.id):
            raise HTTPException(status_code=400, detail="Cannot delete a service with active bookings")

        name = service.name
        try:
            self.db.delete(service)
            self._audit(ACTION_SERVICE_DELETED, "service", service_id, f"Deleted service: {name}")
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(
                status_code=400, detail="Service is referenced by past bookings, set it inactive instead"
            ) from e
        logger.info(f"🗑️ Service {service_id} deleted by admin {self.admin.id}")

    # ========================================================================
    # BOOKINGS
    # ========================================================================

    def list_bookings(self, status: Optional[str] = None, limit: int = 50, offset: int = 0) -> list[BookingResponse]:
        return [build_booking_response(b) for b in self.repo.list_bookings(self.db, status, limit, offset)]

    def _get_booking(self, booking_id: int):
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def get_booking(self, booking_id: int) -> BookingResponse:
        return build_booking_response(self._get_booking(booking_id))

    def update_booking_status(self, booking_id: int, status: str) -> BookingResponse:
        booking = self._get_booking(booking_id)
        previous = booking.status
        booking.status = status
        if status == BOOKING_COMPLETED:
            booking.completed_at = datetime.utcnow()

        self._audit(
            ACTION_OTHER,
            "booking",
            booking.id,
            f"Updated booking status to {status}",
            metadata={"previous_status": previous, "new_status": status},
        )
        self.db.commit()
        self.db.refresh(booking)
        return build_booking_response(booking)

    def cancel_booking(self, booking_id: int, reason: Optional[str]) -> BookingResponse:
        booking = self._get_booking(booking_id)
        clean_reason = sanitize_string(reason.strip()) if reason and reason.strip() else "Cancelled by admin"

        apply_cancellation(self.db, booking, clean_reason)
        self._audit(ACTION_BOOKING_CANCELLED, "booking", booking.id, f"Cancelled booking. Reason: {clean_reason}")
        self.db.commit()
        self.db.refresh(booking)
        return build_booking_response(booking)

    def assign_professional(self, booking_id: int, professional_id: int) -> BookingResponse:
        booking = self._get_booking(booking_id)

        professional = self.repo.get_professional(self.db, professional_id)
        if not professional or not professional.is_active:
            raise HTTPException(status_code=400, detail="Invalid or inactive professional")

        offering = self.repo.get_offering(self.db, professional.id, booking.service_id)
        if not offering:
            raise HTTPException(status_code=400, detail="Professional does not offer this service")

        booking.professional_id = professional.id
        booking.professional_service_id = offering.id
        booking.status = BOOKING_CONFIRMED
        self._audit(
            ACTION_OTHER,
            "booking",
            booking.id,
            f"Assigned professional {professional.full_name or professional.id} to booking {booking.id}",
            metadata={"professional_id": professional.id},
        )
        self.db.commit()
        self.db.refresh(booking)
        return build_booking_response(booking)

    # ========================================================================
    # DISPUTES & REFUNDS
    # ========================================================================

    def list_disputes(self) -> list[DisputeResponse]:
        disputes = []
        for booking in self.repo.list_disputes(self.db):
            payment = booking.payment
            disputes.append(
                DisputeResponse(
                    booking_id=booking.id,
                    booking_status=booking.status,
                    customer_id=booking.customer_id,
                    professional_id=booking.professional_id,
                    service_name=booking.service.name if booking.service else None,
                    final_amount=booking.final_amount,
                    cancellation_reason=booking.cancellation_reason,
                    cancelled_at=booking.cancelled_at,
                    payment_id=payment.id if payment else None,
                    payment_status=payment.status if payment else None,
                    payment_amount=payment.amount if payment else None,
                    refund_amount=payment.refund_amount if payment else None,
                    transaction_id=payment.transaction_id if payment else None,
                )
            )
        return disputes

    async def process_refund(self, booking_id: int, reason: Optional[str], amount: Optional[float]) -> Payment:
        booking = self._get_booking(booking_id)
        payment = self.repo.get_payment_for_booking(self.db, booking.id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")
        if payment.status != PAYMENT_COMPLETED:
            raise HTTPException(status_code=400, detail="Only completed payments can be refunded")

        refund_amount = amount if amount is not None else payment.amount
        if refund_amount > payment.amount:
            raise HTTPException(status_code=400, detail="Refund amount exceeds payment amount")
        refund_reason = sanitize_string(reason.strip()) if reason and reason.strip() else "Refund processed by admin"

        if payment.transaction_id:
            try:
                await razorpay_service.refund_payment(
                    payment.transaction_id,
                    amount=razorpay_service.to_minor_units(refund_amount),
                    notes={"reason": refund_reason, "booking_id": str(booking.id)},
                )
            except razorpay_service.PaymentGatewayError as e:
                logger.error(f"❌ Gateway refund failed for booking {booking.id}: {e.message}")
                raise HTTPException(status_code=502, detail="Refund failed at payment gateway") from e

        payment.status = PAYMENT_REFUNDED
        payment.refund_amount = refund_amount
        payment.refund_reason = refund_reason
        payment.refunded_at = datetime.utcnow()
        booking.status = BOOKING_REFUNDED

        self._audit(
            ACTION_PAYMENT_REFUNDED,
            "payment",
            payment.id,
            f"Refunded payment for booking {booking.id}. Amount: ₹{refund_amount}",
            metadata={"booking_id": booking.id, "amount": refund_amount, "reason": refund_reason},
        )
        self.db.commit()
        self.db.refresh(payment)
        logger.info(f"💸 Refund of {refund_amount} processed for booking {booking.id}")
        return payment

    def resolve_dispute(self, booking_id: int, resolution: str) -> AdminAction:
        booking = self._get_booking(booking_id)
        clean_resolution = sanitize_string(resolution.strip())
        action = self._audit(
            ACTION_OTHER,
            "booking",
            booking.id,
            f"Resolved dispute for booking {booking.id}. Resolution: {clean_resolution}",
            metadata={"resolution": clean_resolution},
        )
        self.db.commit()
        self.db.refresh(action)
        return action

    # ========================================================================
    # REVIEWS
    # ========================================================================

    def list_reviews(self, visible: Optional[bool] = None) -> list[Review]:
        return self.repo.list_reviews(self.db, visible)

    def moderate_review(self, review_id: int, action: str) -> Review:
        review = self.repo.get_review(self.db, review_id)
        if not review:
            raise HTTPException(status_code=404, detail="Review not found")

        if action == "approve":
            review.is_verified = True
            review.is_visible = True
            description = f"Approved review {review.id}"
        elif action == "reject":
            review.is_visible = False
            description = f"Rejected review {review.id}"
        elif action == "hide":
            review.is_visible = False
            description = f"Hidden review {review.id}"
        elif action == "show":
            review.is_visible = True
            description = f"Made review {review.id} visible"
        else:
            raise HTTPException(status_code=400, detail=f"Unknown review action: {action}")

        self.db.flush()
        recompute_professional_rating(self.db, review.professional_id)
        self._audit(ACTION_OTHER, "review", review.id, description, metadata={"action": action})
        self.db.commit()
        self.db.refresh(review)
        return review

    # ========================================================================
    # REPORTING
    # ========================================================================

    def list_payments(self, status: Optional[str] = None, limit: int = 50, offset: int = 0) -> list[Payment]:
        return self.repo.list_payments(self.db, status, limit, offset)

    def list_audit_log(self, action_type: Optional[str] = None, limit: int = 100, offset: int = 0) -> list[AdminAction]:
        return self.repo.list_actions(self.db, action_type, limit, offset)

    def dashboard_stats(self) -> DashboardStats:
        users_by_role = self.repo.count_users_by_role(self.db)
        bookings_by_status = self.repo.count_bookings_by_status(self.db)
        return DashboardStats(
            users_by_role=users_by_role,
            total_users=sum(users_by_role.values()),
            bookings_by_status=bookings_by_status,
            total_bookings=sum(bookings_by_status.values()),
            total_revenue=round(self.repo.total_revenue(self.db), 2),
            pending_verifications=self.repo.count_pending_verifications(self.db),
        )
