"""Catalog service - Business logic for public browsing"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from .repository import CatalogRepository
from .schemas import (
    CategoryResponse,
    OfferedServiceSummary,
    PublicProfessionalResponse,
    ServiceDetailResponse,
    ServiceProfessional,
    ServiceResponse,
)

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for catalog business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def list_services(self, category: Optional[str] = None, search: Optional[str] = None) -> list[ServiceResponse]:
        services = self.repo.get_active_services(self.db, category, search.strip() if search else None)
        ratings = self.repo.get_service_ratings(self.db, [s.id for s in services])

        results = []
        for service in services:
            rating, count = ratings.get(service.id, (None, 0))
            item = ServiceResponse.model_validate(service)
            item.rating = round(rating, 2) if rating is not None else None
            item.review_count = count
            results.append(item)
        return results

    def list_categories(self) -> list[CategoryResponse]:
        return [
            CategoryResponse(category=category, service_count=count)
            for category, count in self.repo.get_category_counts(self.db)
        ]

    def get_service_detail(self, service_id: int) -> ServiceDetailResponse:
        service = self.repo.get_active_service(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        rating, count = self.repo.get_service_ratings(self.db, [service.id]).get(service.id, (None, 0))
        detail = ServiceDetailResponse.model_validate(service)
        detail.rating = round(rating, 2) if rating is not None else None
        detail.review_count = count
        detail.professionals = [
            ServiceProfessional(
                professional_id=profile.id,
                professional_service_id=offering.id,
                full_name=profile.full_name,
                avatar_url=profile.avatar_url,
                is_verified=profile.is_verified,
                rating_average=profile.rating_average,
                total_reviews=profile.total_reviews,
                experience_years=profile.experience_years,
                price=offering.price,
                duration_minutes=offering.duration_minutes or service.duration_minutes,
            )
            for offering, profile in self.repo.get_available_offerings(self.db, service.id)
        ]
        return detail

    def get_professional(self, professional_id: int) -> PublicProfessionalResponse:
        profile = self.repo.get_active_professional(self.db, professional_id)
        if not profile:
            raise HTTPException(status_code=404, detail="Professional not found")

        return PublicProfessionalResponse(
            id=profile.id,
            full_name=profile.full_name,
            avatar_url=profile.avatar_url,
            bio=profile.bio,
            is_verified=profile.is_verified,
            rating_average=profile.rating_average,
            total_reviews=profile.total_reviews,
            experience_years=profile.experience_years,
            skills=profile.skills,
            hourly_rate=profile.hourly_rate,
            completed_jobs=self.repo.count_completed_jobs(self.db, profile.id),
            services=[
                OfferedServiceSummary(
                    service_id=service.id, name=service.name, category=service.category, price=offering.price
                )
                for offering, service in self.repo.get_professional_offerings(self.db, profile.id)
            ],
        )
