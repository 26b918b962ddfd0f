from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import Client, ClientActivity
from app.db.repositories.base import Repository


class ClientsRepository(Repository):
    def list(self, project_id: UUID, limit: int = 100, offset: int = 0) -> List[Client]:
        stmt = (
            select(Client)
            .where(Client.project_id == project_id)
            .order_by(Client.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.scalars(stmt).all())

    def get(self, project_id: UUID, client_id: UUID) -> Optional[Client]:
        stmt = select(Client).where(Client.project_id == project_id, Client.id == client_id)
        return self.session.scalars(stmt).first()

    def create(self, project_id: UUID, company_name: str, **fields) -> Client:
        return self.save(Client(project_id=project_id, company_name=company_name, **fields))

    def update(self, project_id: UUID, client_id: UUID, **fields) -> Optional[Client]:
        client = self.get(project_id, client_id)
        if not client:
            return None
        return self.apply(client, **fields)

    def delete(self, project_id: UUID, client_id: UUID) -> bool:
        return self.remove(self.get(project_id, client_id))


class ClientActivitiesRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, client_id: UUID, limit: int = 100) -> List[ClientActivity]:
        stmt = (
            select(ClientActivity)
            .where(ClientActivity.client_id == client_id)
            .order_by(ClientActivity.created_at.desc())
            .limit(limit)
        )
        return list(self.session.scalars(stmt).all())

    def create(self, client_id: UUID, activity_type, **fields) -> ClientActivity:
        activity = ClientActivity(client_id=client_id, type=activity_type, **fields)
        self.session.add(activity)
        self.session.commit()
        self.session.refresh(activity)
        return activity
