from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class ArtifactUndoRequest(BaseModel):
    projectId: Optional[UUID] = None
    type: Optional[str] = None
