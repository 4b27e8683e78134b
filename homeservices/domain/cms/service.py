"""CMS service - Admin editing and cached public delivery of site content"""

import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import build_cms_key, cache, invalidate_cms_cache
from ...config import CMS_CACHE_TTL
from ...constants import ACTION_OTHER
from ...models import FooterSettings, HomepageBanner, HomepageSection, PageContent, Profile
from ..admin.audit import RequestContext, record_admin_action
from .repository import CmsRepository
from .schemas import (
    BannerCreate,
    BannerResponse,
    BannerUpdate,
    FooterSettingsResponse,
    FooterSettingsUpdate,
    HomepageResponse,
    PageContentUpsert,
    SectionCreate,
    SectionResponse,
    SectionUpdate,
    normalize_page_path,
)

logger = logging.getLogger(__name__)


def page_value(content: PageContent) -> Any:
    if content.content_type == "json":
        return content.content_json
    return content.content_value


class CmsService:
    """Public reads work without an admin; writes require one for the audit trail"""

    def __init__(self, db: Session, admin: Optional[Profile] = None, context: Optional[RequestContext] = None):
        self.db = db
        self.admin = admin
        self.context = context or RequestContext()
        self.repo = CmsRepository()

    # ========================================================================
    # PUBLIC
    # ========================================================================

    def get_homepage(self, now: Optional[datetime] = None) -> dict[str, Any]:
        key = build_cms_key("homepage")
        cached = cache.get(key)
        if cached is not None:
            return cached

        now = now or datetime.utcnow()
        footer = self.repo.active_footer(self.db)
        payload = HomepageResponse(
            banners=[BannerResponse.model_validate(b) for b in self.repo.live_banners(self.db, now)],
            sections=[SectionResponse.model_validate(s) for s in self.repo.active_sections(self.db)],
            footer=FooterSettingsResponse.model_validate(footer) if footer else None,
        ).model_dump(mode="json")

        cache.set(key, payload, ttl=CMS_CACHE_TTL)
        return payload

    def get_footer(self) -> Optional[FooterSettings]:
        return self.repo.active_footer(self.db)

    def get_page(self, page_path: str) -> dict[str, Any]:
        path = normalize_page_path(page_path)
        key = build_cms_key("page", path)
        cached = cache.get(key)
        if cached is not None:
            return cached

        payload = {c.content_key: page_value(c) for c in self.repo.page_contents(self.db, path)}
        cache.set(key, payload, ttl=CMS_CACHE_TTL)
        return payload

    def get_page_value(self, page_path: str, content_key: str) -> Any:
        content = self.repo.get_page_content(self.db, normalize_page_path(page_path), content_key)
        if not content or not content.is_active:
            raise HTTPException(status_code=404, detail="Content not found")
        return page_value(content)

    # ========================================================================
    # ADMIN
    # ========================================================================

    def _changed(self, target_type: str, target_id: Any, description: str) -> None:
        """Audit, commit, and drop cached public payloads"""
        record_admin_action(
            self.db,
            self.admin,
            ACTION_OTHER,
            self.context,
            target_type=target_type,
            target_id=target_id,
            description=description,
        )
        self.db.commit()
        invalidate_cms_cache()

    # Banners
    def list_banners(self) -> list[HomepageBanner]:
        return self.repo.list_banners(self.db)

    def _get_banner(self, banner_id: int) -> HomepageBanner:
        banner = self.repo.get_banner(self.db, banner_id)
        if not banner:
            raise HTTPException(status_code=404, detail="Banner not found")
        return banner

    def create_banner(self, data: BannerCreate) -> HomepageBanner:
        banner = HomepageBanner(**data.model_dump(), created_by=self.admin.id)
        self.db.add(banner)
        self.db.flush()
        self._changed("banner", banner.id, f"Created banner: {banner.title}")
        self.db.refresh(banner)
        return banner

    def update_banner(self, banner_id: int, data: BannerUpdate) -> HomepageBanner:
        banner = self._get_banner(banner_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(banner, key, value)
        self._changed("banner", banner.id, f"Updated banner: {banner.title}")
        self.db.refresh(banner)
        return banner

    def toggle_banner(self, banner_id: int) -> HomepageBanner:
        banner = self._get_banner(banner_id)
        banner.is_active = not banner.is_active
        self._changed("banner", banner.id, f"{'Activated' if banner.is_active else 'Deactivated'} banner: {banner.title}")
        self.db.refresh(banner)
        return banner

    def delete_banner(self, banner_id: int) -> None:
        banner = self._get_banner(banner_id)
        title = banner.title
        self.db.delete(banner)
        self._changed("banner", banner_id, f"Deleted banner: {title}")

    # Sections
    def list_sections(self) -> list[HomepageSection]:
        return self.repo.list_sections(self.db)

    def _get_section(self, section_id: int) -> HomepageSection:
        section = self.repo.get_section(self.db, section_id)
        if not section:
            raise HTTPException(status_code=404, detail="Section not found")
        return section

    def create_section(self, data: SectionCreate) -> HomepageSection:
        section = HomepageSection(**data.model_dump(), created_by=self.admin.id)
        self.db.add(section)
        self.db.flush()
        self._changed("section", section.id, f"Created {section.section_type} section")
        self.db.refresh(section)
        return section

    def update_section(self, section_id: int, data: SectionUpdate) -> HomepageSection:
        section = self._get_section(section_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(section, key, value)
        self._changed("section", section.id, f"Updated {section.section_type} section")
        self.db.refresh(section)
        return section

    def toggle_section(self, section_id: int) -> HomepageSection:
        section = self._get_section(section_id)
        section.is_active = not section.is_active
        self._changed(
            "section", section.id, f"{'Activated' if section.is_active else 'Deactivated'} {section.section_type} section"
        )
        self.db.refresh(section)
        return section

    def delete_section(self, section_id: int) -> None:
        section = self._get_section(section_id)
        section_type = section.section_type
        self.db.delete(section)
        self._changed("section", section_id, f"Deleted {section_type} section")

    # Footer
    def upsert_footer(self, data: FooterSettingsUpdate) -> FooterSettings:
        footer = self.repo.active_footer(self.db)
        if not footer:
            footer = FooterSettings(is_active=True)
            self.db.add(footer)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(footer, key, value)
        footer.updated_by = self.admin.id
        self.db.flush()
        self._changed("footer", footer.id, "Updated footer settings")
        self.db.refresh(footer)
        return footer

    # Page content
    def list_page_contents(self, page_path: str) -> list[PageContent]:
        return self.repo.page_contents(self.db, normalize_page_path(page_path), active_only=False)

    def upsert_page_content(self, data: PageContentUpsert) -> PageContent:
        content = self.repo.get_page_content(self.db, data.page_path, data.content_key)
        if not content:
            content = PageContent(page_path=data.page_path, content_key=data.content_key)
            self.db.add(content)
        for key, value in data.model_dump(exclude={"page_path", "content_key"}).items():
            setattr(content, key, value)
        content.updated_by = self.admin.id
        self.db.flush()
        self._changed("page_content", content.id, f"Updated {data.page_path} {data.content_key}")
        self.db.refresh(content)
        return content

    def delete_page_content(self, content_id: int) -> None:
        content = self.repo.get_page_content_by_id(self.db, content_id)
        if not content:
            raise HTTPException(status_code=404, detail="Content not found")
        label = f"{content.page_path} {content.content_key}"
        self.db.delete(content)
        self._changed("page_content", content_id, f"Deleted {label}")
