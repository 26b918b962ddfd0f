from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import PublishedWebsite


class PublishedWebsitesRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, user_id: str, project_id: Optional[UUID] = None) -> List[PublishedWebsite]:
        stmt = select(PublishedWebsite).where(PublishedWebsite.user_id == user_id)
        if project_id:
            stmt = stmt.where(PublishedWebsite.project_id == project_id)
        stmt = stmt.order_by(PublishedWebsite.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def get(self, user_id: str, website_id: UUID) -> Optional[PublishedWebsite]:
        stmt = select(PublishedWebsite).where(
            PublishedWebsite.user_id == user_id, PublishedWebsite.id == website_id
        )
        return self.session.scalars(stmt).first()

    def get_by_subdomain(self, subdomain: str) -> Optional[PublishedWebsite]:
        stmt = select(PublishedWebsite).where(PublishedWebsite.subdomain == subdomain)
        return self.session.scalars(stmt).first()

    def create(self, **fields) -> PublishedWebsite:
        website = PublishedWebsite(**fields)
        self.session.add(website)
        self.session.commit()
        self.session.refresh(website)
        return website

    def update(self, website: PublishedWebsite, **fields) -> PublishedWebsite:
        for key, value in fields.items():
            setattr(website, key, value)
        self.session.commit()
        self.session.refresh(website)
        return website

    def delete(self, website: PublishedWebsite) -> None:
        self.session.delete(website)
        self.session.commit()
