from typing import Any, TypeVar

from sqlalchemy.orm import Session

ModelT = TypeVar("ModelT")


class Repository:
    """Shared commit-per-call helpers for project-scoped repositories."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def save(self, obj: ModelT) -> ModelT:
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def apply(self, obj: ModelT, **fields: Any) -> ModelT:
        for key, value in fields.items():
            setattr(obj, key, value)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def remove(self, obj: Any) -> bool:
        if obj is None:
            return False
        self.session.delete(obj)
        self.session.commit()
        return True
