from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.auth.dependencies import AuthContext, get_current_user
from app.db.deps import get_session
from app.db.models import Message
from app.db.repositories.credits import InsufficientCreditsError
from app.db.repositories.messages import MessagesRepository
from app.routers.artifacts import artifact_to_dict
from app.routers.projects import require_project
from app.schemas.chat import ChatRequest, ToolRunRequest
from app.services.chat import run_chat
from app.services.sse import stream_pipeline
from app.services.tools.base import ToolExecutionError
from app.services.tools.registry import ToolValidationError, UnknownToolError, execute_tool

router = APIRouter(tags=["chat"])

_SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"}


def message_to_dict(message: Message) -> dict[str, Any]:
    return {
        "id": str(message.id),
        "projectId": str(message.project_id),
        "role": message.role.value,
        "content": message.content,
        "metadata": message.metadata_ or {},
        "createdAt": message.created_at.isoformat() if message.created_at else None,
    }


@router.get("/messages")
def list_messages(
    projectId: Optional[UUID] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not projectId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing projectId")
    require_project(session, auth.user_id, projectId)
    return {"messages": [message_to_dict(m) for m in MessagesRepository(session).list(projectId)]}


@router.post("/chat")
def chat(
    request: Request,
    payload: ChatRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> StreamingResponse:
    if not payload.projectId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing projectId")
    if not payload.messages:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing messages")
    project = require_project(session, auth.user_id, payload.projectId)
    model_id = payload.modelId or project.model_id

    def pipeline(token):
        return run_chat(
            token,
            user_id=auth.user_id,
            project_id=project.id,
            messages=payload.messages,
            model_id=model_id,
        )

    return StreamingResponse(
        stream_pipeline(request, pipeline, name="chat"),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


@router.post("/tools/{tool_name}")
def run_tool(
    tool_name: str,
    payload: ToolRunRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not payload.projectId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing projectId")
    project = require_project(session, auth.user_id, payload.projectId)
    try:
        execution = execute_tool(
            session=session,
            user_id=auth.user_id,
            project_id=project.id,
            tool_name=tool_name,
            raw_args=payload.params,
            model_id=payload.modelId or project.model_id,
        )
    except UnknownToolError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ToolValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except InsufficientCreditsError as exc:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail="Insufficient credits") from exc
    except ToolExecutionError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    artifact = execution.result.artifact
    return {
        "artifact": artifact_to_dict(artifact) if artifact is not None else None,
        "summary": execution.result.summary,
        "creditsCharged": execution.credits_charged,
        "creditsRemaining": execution.credits_remaining,
    }
