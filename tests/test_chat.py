import json
from types import SimpleNamespace

import pytest

from app.db.enums import ArtifactTypeEnum
from app.db.repositories.artifacts import ArtifactsRepository
from app.db.repositories.credits import CreditsRepository
from app.services import chat as chat_service

from conftest import parse_sse


def _tool_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=json.dumps(arguments)))


@pytest.fixture()
def scripted_llm(monkeypatch):
    """Replace the OpenRouter client with one that replays queued replies."""
    replies: list[SimpleNamespace] = []
    conversations: list[list[dict]] = []

    class ScriptedLLM:
        def __init__(self, default_model=None):
            self.default_model = default_model

        def chat(self, conversation, tools=None, params=None):
            conversations.append(list(conversation))
            return replies.pop(0), "stop"

    monkeypatch.setattr(chat_service, "LLMClient", ScriptedLLM)
    return {"replies": replies, "conversations": conversations}


def _plan_call():
    return _tool_call("call_1", "generate_business_plan", {"businessType": "Web Design Agency", "targetMarket": "dentists"})


def test_chat_runs_requested_tool_and_streams_reply(api_client, db_session, project, scripted_llm):
    scripted_llm["replies"].extend(
        [
            SimpleNamespace(content=None, tool_calls=[_plan_call()]),
            SimpleNamespace(content="Your plan is ready.", tool_calls=None),
        ]
    )

    resp = api_client.post(
        "/chat",
        json={"projectId": str(project.id), "messages": [{"role": "user", "content": "Build me a plan"}]},
    )
    assert resp.status_code == 200
    events = parse_sse(resp.text)

    assert [name for name, _ in events] == ["progress", "progress", "message", "done"]
    start, complete = events[0][1], events[1][1]
    assert start["status"] == "start"
    assert start["name"] == "Business Plan"
    assert complete["status"] == "complete"
    assert complete["artifactType"] == "business_plan"
    assert complete["creditsRemaining"] == 45
    assert events[2][1] == {"role": "assistant", "content": "Your plan is ready."}
    assert events[3][1] == {"toolCount": 1, "finishReason": "stop"}

    tool_turn = scripted_llm["conversations"][1][-1]
    assert tool_turn["role"] == "tool"
    assert tool_turn["tool_call_id"] == "call_1"
    assert scripted_llm["conversations"][0][0]["content"] == chat_service.SYSTEM_PROMPT

    db_session.expire_all()
    assert ArtifactsRepository(db_session).get_data(project.id, ArtifactTypeEnum.business_plan) is not None
    listed = api_client.get("/messages", params={"projectId": str(project.id)}).json()["messages"]
    assert sorted((m["role"], m["content"]) for m in listed) == [
        ("assistant", "Your plan is ready."),
        ("user", "Build me a plan"),
    ]


def test_chat_saves_tool_summary_when_model_is_silent(api_client, db_session, project, scripted_llm):
    scripted_llm["replies"].extend(
        [
            SimpleNamespace(content=None, tool_calls=[_plan_call()]),
            SimpleNamespace(content="", tool_calls=[]),
        ]
    )

    events = parse_sse(
        api_client.post(
            "/chat",
            json={"projectId": str(project.id), "messages": [{"role": "user", "content": "plan"}]},
        ).text
    )
    assert "message" not in [name for name, _ in events]

    listed = api_client.get("/messages", params={"projectId": str(project.id)}).json()["messages"]
    assistant = [m for m in listed if m["role"] == "assistant"]
    assert assistant[0]["content"] == "Executed: generate_business_plan"
    assert assistant[0]["metadata"]["toolCount"] == 1


def test_chat_reports_insufficient_credits_per_tool(api_client, db_session, project, scripted_llm):
    credits = CreditsRepository(db_session)
    credits.get_or_create_profile("test-user")
    credits.deduct("test-user", 48, "Spent elsewhere")
    scripted_llm["replies"].extend(
        [
            SimpleNamespace(content=None, tool_calls=[_plan_call()]),
            SimpleNamespace(content="You are out of credits.", tool_calls=None),
        ]
    )

    events = parse_sse(
        api_client.post(
            "/chat",
            json={"projectId": str(project.id), "messages": [{"role": "user", "content": "plan"}]},
        ).text
    )
    error = events[1][1]
    assert error["status"] == "error"
    assert error["tool"] == "generate_business_plan"
    assert "buy more credits" in scripted_llm["conversations"][1][-1]["content"]

    db_session.expire_all()
    assert credits.get_balance("test-user") == 2
    assert ArtifactsRepository(db_session).get_data(project.id, ArtifactTypeEnum.business_plan) is None


def test_chat_validates_request(api_client, project):
    assert api_client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}]}).status_code == 400
    missing = api_client.post("/chat", json={"projectId": str(project.id), "messages": []})
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Missing messages"
    assert api_client.get("/messages").status_code == 400
