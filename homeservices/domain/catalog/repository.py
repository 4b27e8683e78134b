"""Catalog repository - Database reads for public browsing"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...constants import BOOKING_COMPLETED, ROLE_PROFESSIONAL
from ...models import Booking, ProfessionalService, Profile, Review, Service


class CatalogRepository:
    """Repository for catalog database operations"""

    @staticmethod
    def get_active_services(
        db: Session, category: Optional[str] = None, search: Optional[str] = None
    ) -> list[Service]:
        query = db.query(Service).filter(Service.status == "active")
        if category:
            query = query.filter(Service.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Service.name.ilike(pattern), Service.description.ilike(pattern)))
        return query.order_by(Service.created_at.desc(), Service.id.desc()).all()

    @staticmethod
    def get_active_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id, Service.status == "active").first()

    @staticmethod
    def get_category_counts(db: Session) -> list[tuple[str, int]]:
        return (
            db.query(Service.category, func.count(Service.id))
            .filter(Service.status == "active")
            .group_by(Service.category)
            .order_by(Service.category)
            .all()
        )

    @staticmethod
    def get_service_ratings(db: Session, service_ids: list[int]) -> dict[int, tuple[float, int]]:
        """Average visible rating and review count per service"""
        if not service_ids:
            return {}
        rows = (
            db.query(Review.service_id, func.avg(Review.rating), func.count(Review.id))
            .filter(Review.service_id.in_(service_ids), Review.is_visible.is_(True))
            .group_by(Review.service_id)
            .all()
        )
        return {service_id: (float(avg), count) for service_id, avg, count in rows}

    @staticmethod
    def get_available_offerings(db: Session, service_id: int) -> list[tuple[ProfessionalService, Profile]]:
        """Offerings of a service by active professionals"""
        return (
            db.query(ProfessionalService, Profile)
            .join(Profile, Profile.id == ProfessionalService.professional_id)
            .filter(
                ProfessionalService.service_id == service_id,
                ProfessionalService.is_available.is_(True),
                Profile.role == ROLE_PROFESSIONAL,
                Profile.is_active.is_(True),
            )
            .order_by(Profile.rating_average.desc(), ProfessionalService.price)
            .all()
        )

    @staticmethod
    def get_active_professional(db: Session, professional_id: int) -> Optional[Profile]:
        return (
            db.query(Profile)
            .filter(
                Profile.id == professional_id,
                Profile.role == ROLE_PROFESSIONAL,
                Profile.is_active.is_(True),
            )
            .first()
        )

    @staticmethod
    def get_professional_offerings(db: Session, professional_id: int) -> list[tuple[ProfessionalService, Service]]:
        return (
            db.query(ProfessionalService, Service)
            .join(Service, Service.id == ProfessionalService.service_id)
            .filter(
                ProfessionalService.professional_id == professional_id,
                ProfessionalService.is_available.is_(True),
                Service.status == "active",
            )
            .order_by(Service.name)
            .all()
        )

    @staticmethod
    def count_completed_jobs(db: Session, professional_id: int) -> int:
        return (
            db.query(func.count(Booking.id))
            .filter(Booking.professional_id == professional_id, Booking.status == BOOKING_COMPLETED)
            .scalar()
            or 0
        )
