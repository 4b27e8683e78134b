"""CMS domain schemas - homepage banners, sections, footer and page content"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ...constants import HOMEPAGE_SECTION_TYPES, PAGE_CONTENT_TYPES
from ..bookings.schemas import to_naive_utc


def normalize_page_path(path: str) -> str:
    """'about', '/about/' -> '/about'"""
    cleaned = "/" + path.strip().strip("/")
    return cleaned


# Banners
class BannerBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    image_url: Optional[str] = Field(None, max_length=500)
    link_url: Optional[str] = Field(None, max_length=500)
    link_text: Optional[str] = Field(None, max_length=100)
    position: int = 0
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v else v


class BannerCreate(BannerBase):
    pass


class BannerUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    image_url: Optional[str] = Field(None, max_length=500)
    link_url: Optional[str] = Field(None, max_length=500)
    link_text: Optional[str] = Field(None, max_length=100)
    position: Optional[int] = None
    is_active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v else v


class BannerResponse(BannerBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Homepage sections
class SectionBase(BaseModel):
    section_type: str
    title: Optional[str] = Field(None, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    content: Optional[Any] = None
    image_url: Optional[str] = Field(None, max_length=500)
    background_color: Optional[str] = Field(None, max_length=20)
    text_color: Optional[str] = Field(None, max_length=20)
    position: int = 0
    display_order: int = 0
    is_active: bool = True

    @field_validator("section_type")
    @classmethod
    def validate_section_type(cls, v: str) -> str:
        if v not in HOMEPAGE_SECTION_TYPES:
            raise ValueError(f"Section type must be one of: {', '.join(HOMEPAGE_SECTION_TYPES)}")
        return v


class SectionCreate(SectionBase):
    pass


class SectionUpdate(BaseModel):
    section_type: Optional[str] = None
    title: Optional[str] = Field(None, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    content: Optional[Any] = None
    image_url: Optional[str] = Field(None, max_length=500)
    background_color: Optional[str] = Field(None, max_length=20)
    text_color: Optional[str] = Field(None, max_length=20)
    position: Optional[int] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("section_type")
    @classmethod
    def validate_section_type(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in HOMEPAGE_SECTION_TYPES:
            raise ValueError(f"Section type must be one of: {', '.join(HOMEPAGE_SECTION_TYPES)}")
        return v


class SectionResponse(SectionBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Footer
class FooterSettingsUpdate(BaseModel):
    company_name: Optional[str] = Field(None, max_length=255)
    company_description: Optional[str] = Field(None, max_length=2000)
    contact_email: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=1000)
    facebook_url: Optional[str] = Field(None, max_length=500)
    twitter_url: Optional[str] = Field(None, max_length=500)
    instagram_url: Optional[str] = Field(None, max_length=500)
    linkedin_url: Optional[str] = Field(None, max_length=500)
    youtube_url: Optional[str] = Field(None, max_length=500)
    quick_links: Optional[list[dict[str, str]]] = None
    privacy_policy_url: Optional[str] = Field(None, max_length=500)
    terms_url: Optional[str] = Field(None, max_length=500)
    refund_policy_url: Optional[str] = Field(None, max_length=500)
    newsletter_enabled: Optional[bool] = None
    newsletter_title: Optional[str] = Field(None, max_length=255)
    newsletter_description: Optional[str] = Field(None, max_length=1000)
    copyright_text: Optional[str] = Field(None, max_length=255)


class FooterSettingsResponse(FooterSettingsUpdate):
    id: int
    is_active: bool
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Page content
class PageContentUpsert(BaseModel):
    page_path: str = Field(..., min_length=1, max_length=255)
    content_key: str = Field(..., min_length=1, max_length=100)
    content_value: Optional[str] = None
    content_json: Optional[Any] = None
    content_type: str = "text"
    display_order: int = 0
    is_active: bool = True

    @field_validator("page_path")
    @classmethod
    def validate_page_path(cls, v: str) -> str:
        return normalize_page_path(v)

    @field_validator("content_type")
    @classmethod
    def validate_content_type(cls, v: str) -> str:
        if v not in PAGE_CONTENT_TYPES:
            raise ValueError(f"Content type must be one of: {', '.join(PAGE_CONTENT_TYPES)}")
        return v


class PageContentResponse(BaseModel):
    id: int
    page_path: str
    content_key: str
    content_value: Optional[str] = None
    content_json: Optional[Any] = None
    content_type: str
    display_order: int
    is_active: bool
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HomepageResponse(BaseModel):
    banners: list[BannerResponse]
    sections: list[SectionResponse]
    footer: Optional[FooterSettingsResponse] = None
