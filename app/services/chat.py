from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from typing import Any, Optional
from uuid import UUID

from app.db.base import session_scope
from app.db.enums import MessageRoleEnum
from app.db.repositories.credits import InsufficientCreditsError
from app.db.repositories.messages import MessagesRepository
from app.llm.client import LLMClient, LLMGenerationParams, normalize_model_id
from app.services.sse import CancellationToken, SSEEvent
from app.services.tools.base import ToolExecutionError
from app.services.tools.registry import (
    ToolValidationError,
    UnknownToolError,
    execute_tool,
    function_specs,
    progress_for,
)

logger = logging.getLogger(__name__)

MAX_TOOL_ROUNDS = 5

SYSTEM_PROMPT = """You are an AI that builds complete, ready-to-launch businesses. You have these tools available:

=== GENERATION TOOLS (for creating NEW artifacts) ===
- perform_market_research: Research competitors, pricing, and market opportunities
- generate_brand_identity: Create business name, logo, colors, and branding
- generate_business_plan: Create pricing tiers, service packages, and revenue model
- generate_website_files: Build a complete website using brand identity
- generate_leads: Find potential customers (only when user asks)
- generate_outreach_scripts: Create personalized scripts (only when user asks)
- generate_ads: Create ad creatives (only when user asks)

=== EDIT TOOLS (for MODIFYING existing artifacts) ===
- edit_website: Modify existing website (change colors, text, layout, sections)
- edit_identity: Modify existing brand (rename, change colors, update tagline)
- edit_pricing: Modify existing pricing (add tiers, change prices, update packages)

=== RULES FOR CHOOSING TOOLS ===
1. FIRST MESSAGE (no artifacts exist): run perform_market_research, generate_brand_identity and
   generate_business_plan, then generate_website_files with the brand identity.
2. SUBSEQUENT MESSAGES (artifacts exist): use EDIT tools.
   - "Change the button to blue" -> edit_website
   - "Rename the business to X" -> edit_identity
   - "Add a premium tier at $299" -> edit_pricing
3. REGENERATE only when the user explicitly says "regenerate", "start over", or "create new".
4. generate_leads, generate_outreach_scripts and generate_ads run ONLY when the user explicitly asks;
   outreach scripts also need existing leads.

After initial generation, summarize what was created (business name, competitors found, pricing tiers,
website) and suggest example edits. After editing, briefly confirm what was changed."""


def _message_content(message: dict[str, Any]) -> str:
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return " ".join(part.get("text", "") for part in content if isinstance(part, dict))
    return ""


def _parse_tool_arguments(raw: Optional[str]) -> dict[str, Any]:
    if not raw:
        return {}
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError("Tool arguments must be a JSON object.")
    return parsed


def _assistant_turn(message: Any) -> dict[str, Any]:
    return {
        "role": "assistant",
        "content": message.content or "",
        "tool_calls": [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.function.name, "arguments": call.function.arguments or "{}"},
            }
            for call in message.tool_calls
        ],
    }


def run_chat(
    token: CancellationToken,
    *,
    user_id: str,
    project_id: UUID,
    messages: list[dict[str, Any]],
    model_id: Optional[str] = None,
) -> Iterator[SSEEvent]:
    """
    One chat turn as a stream of SSE events.

    The model may request tools for up to five rounds; each tool call is
    credit-gated through the registry and reported as `progress` events.
    The final assistant text is emitted as `message`, then `done`.
    """
    model = normalize_model_id(model_id)
    llm = LLMClient(default_model=model)

    with session_scope() as session:
        messages_repo = MessagesRepository(session)
        last = messages[-1] if messages else None
        if last and last.get("role") == MessageRoleEnum.user.value:
            messages_repo.create(project_id, MessageRoleEnum.user, _message_content(last))

        conversation: list[dict[str, Any]] = [{"role": "system", "content": SYSTEM_PROMPT}]
        conversation.extend(
            {"role": m.get("role"), "content": _message_content(m)}
            for m in messages
            if m.get("role") in (MessageRoleEnum.user.value, MessageRoleEnum.assistant.value)
        )

        called: list[str] = []
        text = ""
        finish_reason: Optional[str] = None
        for _ in range(MAX_TOOL_ROUNDS):
            token.raise_if_cancelled()
            reply, finish_reason = llm.chat(
                conversation, tools=function_specs(), params=LLMGenerationParams(temperature=0.7)
            )
            if not reply.tool_calls:
                text = reply.content or ""
                break

            conversation.append(_assistant_turn(reply))
            for call in reply.tool_calls:
                token.raise_if_cancelled()
                name = call.function.name
                called.append(name)
                progress = progress_for(name)
                yield "progress", {
                    "tool": name,
                    "status": "start",
                    "name": progress.name,
                    "message": progress.start_message,
                    "steps": list(progress.steps),
                }
                outcome = yield from _run_tool_call(
                    session=session,
                    user_id=user_id,
                    project_id=project_id,
                    model_id=model,
                    name=name,
                    raw_arguments=call.function.arguments,
                )
                conversation.append({"role": "tool", "tool_call_id": call.id, "content": outcome})
        else:
            logger.info("Chat tool round limit reached", extra={"project_id": str(project_id)})

        token.raise_if_cancelled()
        if text:
            yield "message", {"role": "assistant", "content": text}

        content = text or (f"Executed: {', '.join(called)}" if called else "")
        if content:
            messages_repo.create(
                project_id,
                MessageRoleEnum.assistant,
                content,
                {"toolCount": len(called), "finishReason": finish_reason},
            )
        yield "done", {"toolCount": len(called), "finishReason": finish_reason}


def _run_tool_call(
    *,
    session,
    user_id: str,
    project_id: UUID,
    model_id: str,
    name: str,
    raw_arguments: Optional[str],
) -> Iterator[SSEEvent]:
    progress = progress_for(name)
    try:
        execution = execute_tool(
            session=session,
            user_id=user_id,
            project_id=project_id,
            tool_name=name,
            raw_args=_parse_tool_arguments(raw_arguments),
            model_id=model_id,
        )
    except InsufficientCreditsError as exc:
        yield "progress", {"tool": name, "status": "error", "name": progress.name, "error": str(exc)}
        return f"Error: {exc}. The user needs to buy more credits before running {name}."
    except (ToolExecutionError, ToolValidationError, UnknownToolError, ValueError) as exc:
        yield "progress", {"tool": name, "status": "error", "name": progress.name, "error": str(exc)}
        return f"Error: {exc}"

    artifact = execution.result.artifact
    yield "progress", {
        "tool": name,
        "status": "complete",
        "name": progress.name,
        "message": progress.complete_message,
        "durationMs": execution.duration_ms,
        "artifactType": artifact.type.value if artifact is not None else None,
        "creditsRemaining": execution.credits_remaining,
    }
    return execution.result.summary or "Done."
