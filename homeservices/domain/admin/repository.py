"""Admin repository - Cross-cutting queries for moderation and reporting"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from ...constants import (
    ACTIVE_BOOKING_STATUSES,
    BOOKING_CANCELLED,
    BOOKING_REFUNDED,
    PAYMENT_COMPLETED,
    ROLE_PROFESSIONAL,
)
from ...models import (
    AdminAction,
    AuthUser,
    Booking,
    Payment,
    ProfessionalDocument,
    ProfessionalService,
    Profile,
    Review,
    Service,
)


class AdminRepository:
    """Repository for admin database operations"""

    # Users
    @staticmethod
    def list_users(
        db: Session, role: Optional[str] = None, search: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> list[tuple[Profile, Optional[str]]]:
        query = db.query(Profile, AuthUser.email).outerjoin(AuthUser, AuthUser.id == Profile.id)
        if role:
            query = query.filter(Profile.role == role)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Profile.full_name.ilike(pattern), Profile.phone.ilike(pattern), AuthUser.email.ilike(pattern))
            )
        return query.order_by(Profile.created_at.desc(), Profile.id.desc()).offset(offset).limit(limit).all()

    @staticmethod
    def get_profile(db: Session, profile_id: int) -> Optional[Profile]:
        return db.query(Profile).filter(Profile.id == profile_id).first()

    @staticmethod
    def get_auth_user(db: Session, user_id: int) -> Optional[AuthUser]:
        return db.query(AuthUser).filter(AuthUser.id == user_id).first()

    @staticmethod
    def count_bookings_for_profile(db: Session, profile_id: int) -> int:
        return (
            db.query(func.count(Booking.id))
            .filter(or_(Booking.customer_id == profile_id, Booking.professional_id == profile_id))
            .scalar()
            or 0
        )

    @staticmethod
    def count_documents(db: Session, professional_id: int) -> int:
        return (
            db.query(func.count(ProfessionalDocument.id))
            .filter(ProfessionalDocument.professional_id == professional_id)
            .scalar()
            or 0
        )

    # Professionals
    @staticmethod
    def list_pending_professionals(db: Session) -> list[tuple[Profile, Optional[str]]]:
        return (
            db.query(Profile, AuthUser.email)
            .outerjoin(AuthUser, AuthUser.id == Profile.id)
            .filter(Profile.role == ROLE_PROFESSIONAL, Profile.is_verified.is_(False), Profile.is_active.is_(True))
            .order_by(Profile.created_at, Profile.id)
            .all()
        )

    @staticmethod
    def get_professional(db: Session, professional_id: int) -> Optional[Profile]:
        return db.query(Profile).filter(Profile.id == professional_id, Profile.role == ROLE_PROFESSIONAL).first()

    @staticmethod
    def pending_documents(db: Session, professional_id: int) -> list[ProfessionalDocument]:
        return (
            db.query(ProfessionalDocument)
            .filter(ProfessionalDocument.professional_id == professional_id, ProfessionalDocument.status == "pending")
            .all()
        )

    # Services
    @staticmethod
    def list_services(db: Session, status: Optional[str] = None) -> list[Service]:
        query = db.query(Service)
        if status:
            query = query.filter(Service.status == status)
        return query.order_by(Service.created_at.desc(), Service.id.desc()).all()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def service_has_active_bookings(db: Session, service_id: int) -> bool:
        return (
            db.query(Booking.id)
            .filter(Booking.service_id == service_id, Booking.status.in_(ACTIVE_BOOKING_STATUSES))
            .first()
            is not None
        )

    # Bookings
    @staticmethod
    def list_bookings(db: Session, status: Optional[str] = None, limit: int = 50, offset: int = 0) -> list[Booking]:
        query = db.query(Booking).options(
            joinedload(Booking.service),
            joinedload(Booking.customer),
            joinedload(Booking.professional),
            joinedload(Booking.payment),
            joinedload(Booking.review),
        )
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).offset(offset).limit(limit).all()

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_offering(db: Session, professional_id: int, service_id: int) -> Optional[ProfessionalService]:
        return (
            db.query(ProfessionalService)
            .filter(ProfessionalService.professional_id == professional_id, ProfessionalService.service_id == service_id)
            .first()
        )

    @staticmethod
    def list_disputes(db: Session) -> list[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.service), joinedload(Booking.payment))
            .filter(Booking.status.in_((BOOKING_CANCELLED, BOOKING_REFUNDED)))
            .order_by(Booking.updated_at.desc(), Booking.id.desc())
            .all()
        )

    @staticmethod
    def get_payment_for_booking(db: Session, booking_id: int) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.booking_id == booking_id).first()

    # Reviews
    @staticmethod
    def list_reviews(db: Session, visible: Optional[bool] = None) -> list[Review]:
        query = db.query(Review)
        if visible is not None:
            query = query.filter(Review.is_visible.is_(visible))
        return query.order_by(Review.created_at.desc(), Review.id.desc()).all()

    @staticmethod
    def get_review(db: Session, review_id: int) -> Optional[Review]:
        return db.query(Review).filter(Review.id == review_id).first()

    # Payments
    @staticmethod
    def list_payments(db: Session, status: Optional[str] = None, limit: int = 50, offset: int = 0) -> list[Payment]:
        query = db.query(Payment)
        if status:
            query = query.filter(Payment.status == status)
        return query.order_by(Payment.created_at.desc(), Payment.id.desc()).offset(offset).limit(limit).all()

    # Audit log
    @staticmethod
    def list_actions(
        db: Session, action_type: Optional[str] = None, limit: int = 100, offset: int = 0
    ) -> list[AdminAction]:
        query = db.query(AdminAction)
        if action_type:
            query = query.filter(AdminAction.action_type == action_type)
        return query.order_by(AdminAction.created_at.desc(), AdminAction.id.desc()).offset(offset).limit(limit).all()

    # Dashboard
    @staticmethod
    def count_users_by_role(db: Session) -> dict[str, int]:
        return dict(db.query(Profile.role, func.count(Profile.id)).group_by(Profile.role).all())

    @staticmethod
    def count_bookings_by_status(db: Session) -> dict[str, int]:
        return dict(db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all())

    @staticmethod
    def total_revenue(db: Session) -> float:
        return float(
            db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(Payment.status == PAYMENT_COMPLETED).scalar()
            or 0
        )

    @staticmethod
    def count_pending_verifications(db: Session) -> int:
        return (
            db.query(func.count(Profile.id))
            .filter(Profile.role == ROLE_PROFESSIONAL, Profile.is_verified.is_(False), Profile.is_active.is_(True))
            .scalar()
            or 0
        )
