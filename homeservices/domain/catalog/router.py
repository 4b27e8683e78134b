"""Catalog router - public endpoints for services and professionals"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import CategoryResponse, PublicProfessionalResponse, ServiceDetailResponse, ServiceResponse
from .service import CatalogService

router = APIRouter(tags=["Catalog"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


@router.get("/services", response_model=list[ServiceResponse])
async def list_services(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active services, newest first, optionally filtered by category or a name/description search"""
    return service.list_services(category, search)


@router.get("/services/categories", response_model=list[CategoryResponse])
async def list_categories(service: CatalogService = Depends(get_catalog_service)):
    return service.list_categories()


@router.get("/services/{service_id}", response_model=ServiceDetailResponse)
async def get_service(service_id: int, service: CatalogService = Depends(get_catalog_service)):
    """Service detail with the professionals currently offering it"""
    return service.get_service_detail(service_id)


@router.get("/professionals/{professional_id}", response_model=PublicProfessionalResponse)
async def get_professional(professional_id: int, service: CatalogService = Depends(get_catalog_service)):
    return service.get_professional(professional_id)
