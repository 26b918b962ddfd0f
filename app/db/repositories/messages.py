from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.enums import MessageRoleEnum
from app.db.models import Message


class MessagesRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, project_id: UUID, limit: int = 200) -> List[Message]:
        stmt = (
            select(Message)
            .where(Message.project_id == project_id)
            .order_by(Message.created_at.asc())
            .limit(limit)
        )
        return list(self.session.scalars(stmt).all())

    def create(
        self,
        project_id: UUID,
        role: MessageRoleEnum,
        content: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Message:
        message = Message(project_id=project_id, role=role, content=content, metadata_=metadata or {})
        self.session.add(message)
        self.session.commit()
        self.session.refresh(message)
        return message
