from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.enums import ArtifactTypeEnum
from app.db.models import Artifact


class ArtifactUndoUnavailableError(Exception):
    pass


class ArtifactsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, project_id: UUID) -> List[Artifact]:
        stmt = select(Artifact).where(Artifact.project_id == project_id).order_by(Artifact.type)
        return list(self.session.scalars(stmt).all())

    def get_by_type(self, project_id: UUID, artifact_type: ArtifactTypeEnum) -> Optional[Artifact]:
        stmt = select(Artifact).where(Artifact.project_id == project_id, Artifact.type == artifact_type)
        return self.session.scalars(stmt).first()

    def get_data(self, project_id: UUID, artifact_type: ArtifactTypeEnum) -> Optional[dict[str, Any]]:
        artifact = self.get_by_type(project_id, artifact_type)
        return dict(artifact.data) if artifact else None

    def upsert(
        self,
        project_id: UUID,
        artifact_type: ArtifactTypeEnum,
        data: dict[str, Any],
        *,
        keep_history: bool = True,
    ) -> Artifact:
        """
        Write the artifact for (project, type), last write wins.

        An existing row keeps its current payload in `previous_data` and bumps
        `version`. `keep_history=False` replaces the payload in place (used for
        derived projections that should not be undoable).
        """
        artifact = self.get_by_type(project_id, artifact_type)
        if artifact is None:
            artifact = Artifact(project_id=project_id, type=artifact_type, data=data, version=1)
            self.session.add(artifact)
            try:
                self.session.commit()
            except IntegrityError:
                # Another writer created the row first; fall through to the update path.
                self.session.rollback()
                artifact = self.get_by_type(project_id, artifact_type)
                if artifact is None:
                    raise
                return self._overwrite(artifact, data, keep_history=keep_history)
            self.session.refresh(artifact)
            return artifact
        return self._overwrite(artifact, data, keep_history=keep_history)

    def _overwrite(self, artifact: Artifact, data: dict[str, Any], *, keep_history: bool) -> Artifact:
        if keep_history:
            artifact.previous_data = artifact.data
            artifact.version = (artifact.version or 1) + 1
        artifact.data = data
        self.session.commit()
        self.session.refresh(artifact)
        return artifact

    def undo(self, project_id: UUID, artifact_type: ArtifactTypeEnum) -> Optional[Artifact]:
        artifact = self.get_by_type(project_id, artifact_type)
        if artifact is None:
            return None
        if not artifact.previous_data:
            raise ArtifactUndoUnavailableError("No previous version available to undo")
        current = artifact.data
        artifact.data = artifact.previous_data
        artifact.previous_data = current
        artifact.version = (artifact.version or 1) + 1
        self.session.commit()
        self.session.refresh(artifact)
        return artifact

    def delete(self, project_id: UUID, artifact_type: ArtifactTypeEnum) -> bool:
        artifact = self.get_by_type(project_id, artifact_type)
        if artifact is None:
            return False
        self.session.delete(artifact)
        self.session.commit()
        return True
