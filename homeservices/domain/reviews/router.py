"""Review router - submitting and browsing reviews"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_customer
from ...database import get_db
from ...models import Profile
from .schemas import ReviewCreate, ReviewResponse
from .service import ReviewService

router = APIRouter(tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


@router.post("/bookings/{booking_id}/review", response_model=ReviewResponse, status_code=201)
async def create_review(
    booking_id: int,
    data: ReviewCreate,
    customer: Profile = Depends(require_customer),
    service: ReviewService = Depends(get_review_service),
):
    return service.create_review(customer, booking_id, data)


@router.get("/professionals/{professional_id}/reviews", response_model=list[ReviewResponse])
async def list_professional_reviews(professional_id: int, service: ReviewService = Depends(get_review_service)):
    return service.list_for_professional(professional_id)


@router.get("/services/{service_id}/reviews", response_model=list[ReviewResponse])
async def list_service_reviews(service_id: int, service: ReviewService = Depends(get_review_service)):
    return service.list_for_service(service_id)
