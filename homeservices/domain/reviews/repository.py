"""Review repository - Database operations for reviews and rating aggregates"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Profile, Review


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_by_booking(db: Session, booking_id: int) -> Optional[Review]:
        return db.query(Review).filter(Review.booking_id == booking_id).first()

    @staticmethod
    def get_by_id(db: Session, review_id: int) -> Optional[Review]:
        return db.query(Review).filter(Review.id == review_id).first()

    @staticmethod
    def list_visible_for_professional(db: Session, professional_id: int) -> list[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.customer))
            .filter(Review.professional_id == professional_id, Review.is_visible.is_(True))
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

    @staticmethod
    def list_visible_for_service(db: Session, service_id: int) -> list[Review]:
        return (
            db.query(Review)
            .options(joinedload(Review.customer))
            .filter(Review.service_id == service_id, Review.is_visible.is_(True))
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

    @staticmethod
    def create(db: Session, review: Review) -> Review:
        db.add(review)
        db.flush()
        return review


def recompute_professional_rating(db: Session, professional_id: Optional[int]) -> None:
    """Refresh rating_average and total_reviews from the professional's visible reviews"""
    if professional_id is None:
        return
    profile = db.query(Profile).filter(Profile.id == professional_id).first()
    if not profile:
        return

    avg, count = (
        db.query(func.avg(Review.rating), func.count(Review.id))
        .filter(Review.professional_id == professional_id, Review.is_visible.is_(True))
        .one()
    )
    profile.rating_average = round(float(avg), 2) if avg is not None else 0.0
    profile.total_reviews = count or 0
