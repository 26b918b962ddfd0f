import httpx
import pytest

from app.llm import client as llm_client
from app.routers import upload as upload_router
from app.services import website_analyzer
from app.services.media_storage import MediaStorageConfigurationError, build_upload_key, sanitize_filename


class FakeStorage:
    uploads: list[dict] = []

    def __init__(self) -> None:
        self.bucket = "chat-images"

    def upload_bytes(self, *, key, data, content_type, cache_control="max-age=3600"):
        FakeStorage.uploads.append({"key": key, "size": len(data), "content_type": content_type})

    def public_url(self, key: str) -> str:
        return f"https://cdn.example/{self.bucket}/{key}"


@pytest.fixture()
def fake_storage(monkeypatch):
    FakeStorage.uploads = []
    monkeypatch.setattr(upload_router, "MediaStorage", FakeStorage)
    return FakeStorage


def test_upload_key_layout():
    assert sanitize_filename("my photo (1).png") == "my_photo__1_.png"
    key = build_upload_key(user_id="u1", project_id="p1", filename="a b.png", timestamp_ms=1700000000000)
    assert key == "u1/p1/1700000000000_a_b.png"


def test_upload_image(api_client, project, fake_storage):
    resp = api_client.post(
        "/upload",
        data={"projectId": str(project.id), "purpose": "logo"},
        files={"file": ("logo file.png", b"\x89PNG....", "image/png")},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["purpose"] == "logo"
    assert body["size"] == 8
    [upload] = fake_storage.uploads
    assert upload["key"].startswith(f"test-user/{project.id}/")
    assert upload["key"].endswith("_logo_file.png")
    assert body["url"] == f"https://cdn.example/chat-images/{upload['key']}"


def test_upload_rejects_bad_requests(api_client, project, fake_storage, monkeypatch):
    missing = api_client.post("/upload", data={"projectId": str(project.id)})
    assert missing.json()["detail"] == "File and projectId required"

    wrong_type = api_client.post(
        "/upload",
        data={"projectId": str(project.id)},
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert wrong_type.status_code == 400
    assert wrong_type.json()["detail"] == "Invalid file type. Allowed: jpeg, png, gif, webp"

    monkeypatch.setattr(upload_router.settings, "UPLOAD_MAX_BYTES", 4)
    too_big = api_client.post(
        "/upload",
        data={"projectId": str(project.id)},
        files={"file": ("big.png", b"12345", "image/png")},
    )
    assert too_big.json()["detail"] == "File too large. Maximum size is 10MB"
    assert fake_storage.uploads == []


def test_upload_without_storage_config_is_server_error(api_client, project, monkeypatch):
    monkeypatch.setattr(upload_router.settings, "MEDIA_STORAGE_ENDPOINT", None)

    with pytest.raises(MediaStorageConfigurationError):
        upload_router.MediaStorage()

    resp = api_client.post(
        "/upload",
        data={"projectId": str(project.id)},
        files={"file": ("logo.png", b"png", "image/png")},
    )
    assert resp.status_code == 500
    assert resp.json()["detail"] == "MEDIA_STORAGE_ENDPOINT is required"


def test_extract_content_endpoint(api_client, monkeypatch):
    html = "<html><head><title>Acme Plumbing</title></head><body><h1>Fast repairs</h1></body></html>"

    def _get(url, headers=None, timeout=None, follow_redirects=None):
        return httpx.Response(200, text=html, request=httpx.Request("GET", url))

    monkeypatch.setattr(website_analyzer.httpx, "get", _get)

    resp = api_client.post("/extract-content", json={"url": "acme.example"})
    assert resp.status_code == 200
    assert resp.json()["content"]["headline"] == "Fast repairs"

    assert api_client.post("/extract-content", json={"url": "  "}).status_code == 400


def test_models_lists_only_tool_capable_models(api_client, monkeypatch):
    payload = {
        "data": [
            {
                "id": "openai/gpt-4o",
                "name": "GPT-4o",
                "supported_parameters": ["tools", "temperature"],
                "pricing": {"prompt": "0.0000025", "completion": "0.00001"},
                "context_length": 128000,
            },
            {"id": "meta/llama-free", "name": "Llama", "supported_parameters": ["temperature"]},
            {
                "id": "anthropic/claude-sonnet-4",
                "name": "Claude Sonnet 4",
                "supported_parameters": ["tools"],
                "top_provider": {"max_completion_tokens": 64000},
            },
        ]
    }

    def _get(url, headers=None, timeout=None):
        return httpx.Response(200, json=payload, request=httpx.Request("GET", url))

    monkeypatch.setattr(llm_client.httpx, "get", _get)

    models = api_client.get("/models").json()["models"]
    assert [m["id"] for m in models] == ["anthropic/claude-sonnet-4", "openai/gpt-4o"]
    assert models[0]["maxTokens"] == 64000
    assert models[1]["pricing"] == {"prompt": 0.0000025, "completion": 0.00001}


def test_models_upstream_failure(api_client, monkeypatch):
    def _get(url, headers=None, timeout=None):
        return httpx.Response(503, text="down", request=httpx.Request("GET", url))

    monkeypatch.setattr(llm_client.httpx, "get", _get)
    resp = api_client.get("/models")
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to fetch models"
