from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from app.db.models import Project
from app.db.repositories.base import Repository


class ProjectsRepository(Repository):
    def list(self, user_id: str, limit: int = 50, offset: int = 0) -> List[Project]:
        stmt = (
            select(Project)
            .where(Project.user_id == user_id)
            .order_by(Project.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.scalars(stmt).all())

    def get(self, user_id: str, project_id: UUID) -> Optional[Project]:
        stmt = select(Project).where(Project.user_id == user_id, Project.id == project_id)
        return self.session.scalars(stmt).first()

    def get_any(self, project_id: UUID) -> Optional[Project]:
        return self.session.get(Project, project_id)

    def create(self, user_id: str, name: str, **fields) -> Project:
        return self.save(Project(user_id=user_id, name=name, **fields))

    def update(self, user_id: str, project_id: UUID, **fields) -> Optional[Project]:
        project = self.get(user_id, project_id)
        if not project:
            return None
        return self.apply(project, **fields)

    def delete(self, user_id: str, project_id: UUID) -> bool:
        return self.remove(self.get(user_id, project_id))
