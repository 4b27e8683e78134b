"""Catalog domain schemas - Pydantic models for public browsing"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    base_price: float
    duration_minutes: int
    image_url: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    rating: Optional[float] = None
    review_count: int = 0

    class Config:
        from_attributes = True


class CategoryResponse(BaseModel):
    category: str
    service_count: int


class ServiceProfessional(BaseModel):
    """A professional offering a service, with their price"""

    professional_id: int
    professional_service_id: int
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_verified: bool
    rating_average: float
    total_reviews: int
    experience_years: Optional[int] = None
    price: float
    duration_minutes: int


class ServiceDetailResponse(ServiceResponse):
    professionals: list[ServiceProfessional] = []


class OfferedServiceSummary(BaseModel):
    service_id: int
    name: str
    category: str
    price: float


class PublicProfessionalResponse(BaseModel):
    id: int
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    is_verified: bool
    rating_average: float
    total_reviews: int
    experience_years: Optional[int] = None
    skills: Optional[list[str]] = None
    hourly_rate: Optional[float] = None
    completed_jobs: int = 0
    services: list[OfferedServiceSummary] = []
