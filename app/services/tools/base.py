from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.db.enums import ArtifactTypeEnum
from app.db.models import Artifact
from app.db.repositories.artifacts import ArtifactsRepository
from app.llm.client import LLMClient


class ToolExecutionError(RuntimeError):
    """A tool could not produce its artifact; the message is shown to the user."""


class ToolResult(BaseModel):
    """
    Every tool returns:
    - artifact: the upserted artifact row (serialized by the caller)
    - summary: short text fed back into the model context
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    artifact: Optional[Artifact] = None
    summary: str = ""
    details: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class ToolContext:
    session: Session
    user_id: str
    project_id: UUID
    model_id: Optional[str] = None

    def llm(self, model: Optional[str] = None) -> LLMClient:
        return LLMClient(default_model=model or self.model_id)

    def artifacts(self) -> ArtifactsRepository:
        return ArtifactsRepository(self.session)

    def load_artifact_data(self, artifact_type: ArtifactTypeEnum) -> Optional[dict[str, Any]]:
        return self.artifacts().get_data(self.project_id, artifact_type)

    def save_artifact(self, artifact_type: ArtifactTypeEnum, data: dict[str, Any]) -> Artifact:
        return self.artifacts().upsert(self.project_id, artifact_type, data)


class ToolArgs(BaseModel):
    # Models sometimes send extra keys; they are dropped rather than rejected.
    model_config = ConfigDict(extra="ignore")


ArgsT = TypeVar("ArgsT", bound=ToolArgs)


class BaseTool(Generic[ArgsT]):
    name: str
    description: str
    ArgsModel: type[ArgsT]
    artifact_type: ArtifactTypeEnum
    credit_cost: int = 0

    def run(self, *, ctx: ToolContext, args: ArgsT) -> ToolResult:
        raise NotImplementedError

    def parse_args(self, raw: Optional[dict[str, Any]]) -> ArgsT:
        return self.ArgsModel.model_validate(raw or {})

    def function_spec(self) -> dict[str, Any]:
        """OpenAI function-calling schema for this tool."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.ArgsModel.model_json_schema(),
            },
        }
