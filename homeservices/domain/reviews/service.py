"""Review service - Business logic for customer reviews"""

import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...constants import BOOKING_COMPLETED
from ...models import Profile, Review
from ...utils.sanitization import validate_and_sanitize_input
from .repository import ReviewRepository, recompute_professional_rating
from .schemas import ReviewCreate, ReviewResponse

logger = logging.getLogger(__name__)


def build_review_response(review: Review) -> ReviewResponse:
    response = ReviewResponse.model_validate(review)
    response.customer_name = review.customer.full_name if review.customer else None
    return response


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    def create_review(self, customer: Profile, booking_id: int, data: ReviewCreate) -> ReviewResponse:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.customer_id != customer.id:
            raise HTTPException(status_code=403, detail="Not authorized to review this booking")
        if booking.status != BOOKING_COMPLETED:
            raise HTTPException(status_code=400, detail="Only completed bookings can be reviewed")
        if self.repo.get_by_booking(self.db, booking.id):
            raise HTTPException(status_code=409, detail="Booking already reviewed")

        try:
            comment = validate_and_sanitize_input(data.comment or "") or None
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        review = Review(
            booking_id=booking.id,
            customer_id=customer.id,
            professional_id=booking.professional_id,
            service_id=booking.service_id,
            rating=data.rating,
            comment=comment,
            is_verified=True,
            is_visible=True,
        )

        try:
            self.repo.create(self.db, review)
            recompute_professional_rating(self.db, booking.professional_id)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="Booking already reviewed") from e

        self.db.refresh(review)
        logger.info(f"⭐ Review {review.id} ({review.rating}/5) added for booking {booking.id}")
        return build_review_response(review)

    def list_for_professional(self, professional_id: int) -> list[ReviewResponse]:
        return [build_review_response(r) for r in self.repo.list_visible_for_professional(self.db, professional_id)]

    def list_for_service(self, service_id: int) -> list[ReviewResponse]:
        return [build_review_response(r) for r in self.repo.list_visible_for_service(self.db, service_id)]
