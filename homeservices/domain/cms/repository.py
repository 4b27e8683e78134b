"""CMS repository"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import FooterSettings, HomepageBanner, HomepageSection, PageContent


class CmsRepository:
    """Repository for CMS database operations"""

    @staticmethod
    def list_banners(db: Session) -> list[HomepageBanner]:
        return db.query(HomepageBanner).order_by(HomepageBanner.position, HomepageBanner.id).all()

    @staticmethod
    def live_banners(db: Session, now: datetime) -> list[HomepageBanner]:
        """Active banners whose display window contains now"""
        return (
            db.query(HomepageBanner)
            .filter(
                HomepageBanner.is_active.is_(True),
                or_(HomepageBanner.start_date.is_(None), HomepageBanner.start_date <= now),
                or_(HomepageBanner.end_date.is_(None), HomepageBanner.end_date >= now),
            )
            .order_by(HomepageBanner.position, HomepageBanner.id)
            .all()
        )

    @staticmethod
    def get_banner(db: Session, banner_id: int) -> Optional[HomepageBanner]:
        return db.query(HomepageBanner).filter(HomepageBanner.id == banner_id).first()

    @staticmethod
    def list_sections(db: Session) -> list[HomepageSection]:
        return db.query(HomepageSection).order_by(HomepageSection.display_order, HomepageSection.id).all()

    @staticmethod
    def active_sections(db: Session) -> list[HomepageSection]:
        return (
            db.query(HomepageSection)
            .filter(HomepageSection.is_active.is_(True))
            .order_by(HomepageSection.display_order, HomepageSection.id)
            .all()
        )

    @staticmethod
    def get_section(db: Session, section_id: int) -> Optional[HomepageSection]:
        return db.query(HomepageSection).filter(HomepageSection.id == section_id).first()

    @staticmethod
    def active_footer(db: Session) -> Optional[FooterSettings]:
        return (
            db.query(FooterSettings)
            .filter(FooterSettings.is_active.is_(True))
            .order_by(FooterSettings.id.desc())
            .first()
        )

    @staticmethod
    def page_contents(db: Session, page_path: str, active_only: bool = True) -> list[PageContent]:
        query = db.query(PageContent).filter(PageContent.page_path == page_path)
        if active_only:
            query = query.filter(PageContent.is_active.is_(True))
        return query.order_by(PageContent.display_order, PageContent.id).all()

    @staticmethod
    def get_page_content(db: Session, page_path: str, content_key: str) -> Optional[PageContent]:
        return (
            db.query(PageContent)
            .filter(PageContent.page_path == page_path, PageContent.content_key == content_key)
            .first()
        )

    @staticmethod
    def get_page_content_by_id(db: Session, content_id: int) -> Optional[PageContent]:
        return db.query(PageContent).filter(PageContent.id == content_id).first()
