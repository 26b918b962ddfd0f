from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select

from app.db.models import Lead
from app.db.repositories.base import Repository


class LeadsRepository(Repository):
    def list(self, project_id: UUID) -> List[Lead]:
        stmt = (
            select(Lead)
            .where(Lead.project_id == project_id)
            .order_by(Lead.score.desc(), Lead.created_at.asc())
        )
        return list(self.session.scalars(stmt).all())

    def list_by_ids(self, project_id: UUID, lead_ids: Iterable[UUID]) -> List[Lead]:
        ids = list(lead_ids)
        if not ids:
            return []
        stmt = select(Lead).where(Lead.project_id == project_id, Lead.id.in_(ids))
        return list(self.session.scalars(stmt).all())

    def get(self, project_id: UUID, lead_id: UUID) -> Optional[Lead]:
        stmt = select(Lead).where(Lead.project_id == project_id, Lead.id == lead_id)
        return self.session.scalars(stmt).first()

    def get_any(self, lead_id: UUID) -> Optional[Lead]:
        return self.session.get(Lead, lead_id)

    def get_by_preview_token(self, token: str) -> Optional[Lead]:
        stmt = select(Lead).where(Lead.preview_token == token)
        return self.session.scalars(stmt).first()

    def existing_place_ids(self, project_id: UUID) -> set[str]:
        stmt = select(Lead.place_id).where(Lead.project_id == project_id, Lead.place_id.is_not(None))
        return {place_id for place_id in self.session.scalars(stmt).all() if place_id}

    def create(self, project_id: UUID, company_name: str, **fields) -> Lead:
        return self.save(Lead(project_id=project_id, company_name=company_name, **fields))

    def bulk_create(self, project_id: UUID, rows: List[dict]) -> List[Lead]:
        leads = [Lead(project_id=project_id, **row) for row in rows]
        if not leads:
            return []
        self.session.add_all(leads)
        self.session.commit()
        for lead in leads:
            self.session.refresh(lead)
        return leads

    def update(self, project_id: UUID, lead_id: UUID, **fields) -> Optional[Lead]:
        lead = self.get(project_id, lead_id)
        if not lead:
            return None
        return self.apply(lead, **fields)

    def delete(self, project_id: UUID, lead_id: UUID) -> bool:
        return self.remove(self.get(project_id, lead_id))
