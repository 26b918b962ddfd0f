from contextlib import contextmanager

import pytest

from app.observability import langfuse as langfuse_module


@pytest.fixture(autouse=True)
def reset_langfuse_state() -> None:
    langfuse_module._langfuse_client = None
    langfuse_module._langfuse_initialized = False
    yield
    langfuse_module._langfuse_client = None
    langfuse_module._langfuse_initialized = False


@pytest.fixture()
def enabled_settings(monkeypatch: pytest.MonkeyPatch):
    values = {
        "LANGFUSE_ENABLED": True,
        "LANGFUSE_REQUIRED": False,
        "LANGFUSE_PUBLIC_KEY": "pk-lf",
        "LANGFUSE_SECRET_KEY": "sk-lf",
        "LANGFUSE_BASE_URL": None,
        "LANGFUSE_HOST": "https://cloud.langfuse.com",
        "LANGFUSE_SAMPLE_RATE": 0.5,
        "LANGFUSE_AUTH_CHECK": False,
    }
    for name, value in values.items():
        monkeypatch.setattr(langfuse_module.settings, name, value)
    return monkeypatch


class RecordingLangfuse:
    instances: list["RecordingLangfuse"] = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.trace_updates: list[dict] = []
        self.span_updates: list[dict] = []
        RecordingLangfuse.instances.append(self)

    def auth_check(self) -> bool:
        return True

    @contextmanager
    def start_as_current_span(self, **kwargs):
        recorder = self

        class _Span:
            def update(self, **update_kwargs):
                recorder.span_updates.append(update_kwargs)

        yield _Span()

    def update_current_trace(self, **kwargs):
        self.trace_updates.append(kwargs)


def test_disabled_langfuse_yields_no_span(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_ENABLED", False)
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_REQUIRED", False)

    with langfuse_module.start_langfuse_span(name="tool.business_plan") as span:
        assert span is None
    assert langfuse_module.get_langfuse_client() is None
    assert langfuse_module.get_openai_client_class() is langfuse_module.OpenAIClient


def test_required_but_disabled_is_a_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_ENABLED", False)
    monkeypatch.setattr(langfuse_module.settings, "LANGFUSE_REQUIRED", True)

    with pytest.raises(langfuse_module.LangfuseConfigError, match="LANGFUSE_REQUIRED is true"):
        langfuse_module.initialize_langfuse()


def test_missing_keys_are_rejected(enabled_settings) -> None:
    enabled_settings.setattr(langfuse_module.settings, "LANGFUSE_SECRET_KEY", None)

    with pytest.raises(langfuse_module.LangfuseConfigError, match="LANGFUSE_SECRET_KEY"):
        langfuse_module.initialize_langfuse()
    assert langfuse_module._langfuse_initialized is False


def test_sample_rate_must_be_a_fraction(enabled_settings) -> None:
    enabled_settings.setattr(langfuse_module.settings, "LANGFUSE_SAMPLE_RATE", 1.5)

    with pytest.raises(langfuse_module.LangfuseConfigError, match="between 0.0 and 1.0"):
        langfuse_module.initialize_langfuse()


def test_failed_auth_check_leaves_client_unset(enabled_settings) -> None:
    enabled_settings.setattr(langfuse_module.settings, "LANGFUSE_AUTH_CHECK", True)

    class RejectingLangfuse(RecordingLangfuse):
        def auth_check(self) -> bool:
            return False

    enabled_settings.setattr(langfuse_module, "Langfuse", RejectingLangfuse)

    with pytest.raises(langfuse_module.LangfuseConfigError, match="auth check returned false"):
        langfuse_module.initialize_langfuse()
    assert langfuse_module._langfuse_client is None


def test_span_tags_trace_with_project_session_and_records_errors(enabled_settings) -> None:
    RecordingLangfuse.instances.clear()
    enabled_settings.setattr(langfuse_module, "Langfuse", RecordingLangfuse)

    with pytest.raises(RuntimeError, match="model unavailable"):
        with langfuse_module.start_langfuse_span(
            name="tool.lead_generation",
            metadata={"project_id": "p-1"},
            user_id="u-1",
            session_id="p-1",
        ):
            raise RuntimeError("model unavailable")

    [client] = RecordingLangfuse.instances
    assert client.kwargs["host"] == "https://cloud.langfuse.com"
    assert client.kwargs["sample_rate"] == 0.5
    assert client.trace_updates[0]["session_id"] == "p-1"
    assert client.trace_updates[0]["user_id"] == "u-1"
    assert client.span_updates == [{"level": "ERROR", "status_message": "model unavailable"}]
