"""CMS routers - public site content and its admin editor"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import Profile
from ...schemas import MessageResponse
from ..admin.audit import get_request_context
from .schemas import (
    BannerCreate,
    BannerResponse,
    BannerUpdate,
    FooterSettingsResponse,
    FooterSettingsUpdate,
    HomepageResponse,
    PageContentResponse,
    PageContentUpsert,
    SectionCreate,
    SectionResponse,
    SectionUpdate,
)
from .service import CmsService

router = APIRouter(prefix="/cms", tags=["CMS"])
admin_router = APIRouter(prefix="/admin/cms", tags=["Admin CMS"])


def get_cms_service(db: Session = Depends(get_db)) -> CmsService:
    return CmsService(db)


def get_admin_cms_service(
    request: Request,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> CmsService:
    return CmsService(db, admin, get_request_context(request))


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("/homepage", response_model=HomepageResponse)
async def get_homepage(service: CmsService = Depends(get_cms_service)):
    """Live banners, active sections and footer for the homepage"""
    return service.get_homepage()


@router.get("/footer", response_model=Optional[FooterSettingsResponse])
async def get_footer(service: CmsService = Depends(get_cms_service)):
    return service.get_footer()


@router.get("/pages/{page_path}")
async def get_page(page_path: str, service: CmsService = Depends(get_cms_service)) -> dict[str, Any]:
    return service.get_page(page_path)


@router.get("/pages/{page_path}/{content_key}")
async def get_page_value(page_path: str, content_key: str, service: CmsService = Depends(get_cms_service)):
    return {"key": content_key, "value": service.get_page_value(page_path, content_key)}


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("/banners", response_model=list[BannerResponse])
async def list_banners(service: CmsService = Depends(get_admin_cms_service)):
    return service.list_banners()


@admin_router.post("/banners", response_model=BannerResponse, status_code=201)
async def create_banner(data: BannerCreate, service: CmsService = Depends(get_admin_cms_service)):
    return service.create_banner(data)


@admin_router.patch("/banners/{banner_id}", response_model=BannerResponse)
async def update_banner(banner_id: int, data: BannerUpdate, service: CmsService = Depends(get_admin_cms_service)):
    return service.update_banner(banner_id, data)


@admin_router.post("/banners/{banner_id}/toggle", response_model=BannerResponse)
async def toggle_banner(banner_id: int, service: CmsService = Depends(get_admin_cms_service)):
    return service.toggle_banner(banner_id)


@admin_router.delete("/banners/{banner_id}", response_model=MessageResponse)
async def delete_banner(banner_id: int, service: CmsService = Depends(get_admin_cms_service)):
    service.delete_banner(banner_id)
    return MessageResponse(message="Banner deleted")


@admin_router.get("/sections", response_model=list[SectionResponse])
async def list_sections(service: CmsService = Depends(get_admin_cms_service)):
    return service.list_sections()


@admin_router.post("/sections", response_model=SectionResponse, status_code=201)
async def create_section(data: SectionCreate, service: CmsService = Depends(get_admin_cms_service)):
    return service.create_section(data)


@admin_router.patch("/sections/{section_id}", response_model=SectionResponse)
async def update_section(section_id: int, data: SectionUpdate, service: CmsService = Depends(get_admin_cms_service)):
    return service.update_section(section_id, data)


@admin_router.post("/sections/{section_id}/toggle", response_model=SectionResponse)
async def toggle_section(section_id: int, service: CmsService = Depends(get_admin_cms_service)):
    return service.toggle_section(section_id)


@admin_router.delete("/sections/{section_id}", response_model=MessageResponse)
async def delete_section(section_id: int, service: CmsService = Depends(get_admin_cms_service)):
    service.delete_section(section_id)
    return MessageResponse(message="Section deleted")


@admin_router.get("/footer", response_model=Optional[FooterSettingsResponse])
async def get_footer_settings(service: CmsService = Depends(get_admin_cms_service)):
    return service.get_footer()


@admin_router.put("/footer", response_model=FooterSettingsResponse)
async def upsert_footer(data: FooterSettingsUpdate, service: CmsService = Depends(get_admin_cms_service)):
    return service.upsert_footer(data)


@admin_router.get("/pages", response_model=list[PageContentResponse])
async def list_page_contents(
    page_path: str = Query(..., min_length=1),
    service: CmsService = Depends(get_admin_cms_service),
):
    return service.list_page_contents(page_path)


@admin_router.put("/pages", response_model=PageContentResponse)
async def upsert_page_content(data: PageContentUpsert, service: CmsService = Depends(get_admin_cms_service)):
    """Create or replace the content stored under page_path + content_key"""
    return service.upsert_page_content(data)


@admin_router.delete("/pages/{content_id}", response_model=MessageResponse)
async def delete_page_content(content_id: int, service: CmsService = Depends(get_admin_cms_service)):
    service.delete_page_content(content_id)
    return MessageResponse(message="Content deleted")
