"""
Tests for the Gemini adapter and configuration. ChatGoogleGenerativeAI is
patched out so nothing leaves the machine.
"""

from __future__ import annotations

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import HumanMessage

import gemini_service
from docwise_config import DEFAULT_FLASH_MODEL, DocWiseConfig, load_config, mask_key, require_api_key
from docwise_workflow import InputItem, build_request


RECORDED: dict = {}


class RecordingChatModel(FakeListChatModel):
    """FakeListChatModel that records constructor kwargs and bound tools in RECORDED."""

    def __init__(self, **kwargs):
        super().__init__(responses=['{"summary": "ok"}'])
        RECORDED["init_kwargs"] = kwargs

    def bind_tools(self, tools, **kwargs):
        RECORDED["bound_tools"] = list(tools)
        return self


@pytest.fixture
def patched_model(monkeypatch):
    RECORDED.clear()
    RECORDED["bound_tools"] = []
    monkeypatch.setattr(gemini_service, "ChatGoogleGenerativeAI", RecordingChatModel)
    return RECORDED


def _config():
    return DocWiseConfig(api_key="test-key-1234567890", pro_model="pro-x", flash_model="flash-y")


def test_missing_api_key_raises_runtime_error():
    with pytest.raises(RuntimeError, match="GOOGLE_API_KEY"):
        gemini_service.GeminiAnalysisService(DocWiseConfig(api_key=None))


def test_build_messages_puts_instructions_first():
    request = build_request([InputItem(kind="file", content="QUJD", mime_type="application/pdf", display_name="a.pdf")])
    messages = gemini_service.build_messages(request)

    assert len(messages) == 1
    assert isinstance(messages[0], HumanMessage)
    content = messages[0].content
    assert content[0] == {"type": "text", "text": request.instructions}
    assert content[1] == {"type": "media", "mime_type": "application/pdf", "data": "QUJD"}


def test_generate_uses_tier_model_and_schema(patched_model):
    service = gemini_service.GeminiAnalysisService(_config())
    request = build_request([InputItem(kind="text", content="terms")])

    text = service.generate(request)

    assert text == '{"summary": "ok"}'
    assert patched_model["init_kwargs"]["model"] == "flash-y"
    assert patched_model["init_kwargs"]["google_api_key"] == "test-key-1234567890"
    assert patched_model["init_kwargs"]["response_mime_type"] == "application/json"
    assert patched_model["init_kwargs"]["response_schema"] is request.response_schema
    assert patched_model["bound_tools"] == []


def test_url_request_binds_google_search(patched_model):
    service = gemini_service.GeminiAnalysisService(_config())
    request = build_request([InputItem(kind="url", content="https://example.com/tos")])

    service.generate(request)

    assert patched_model["init_kwargs"]["model"] == "pro-x"
    assert patched_model["bound_tools"] == [{"google_search": {}}]


def test_load_config_reads_env(monkeypatch):
    for name in ("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY", "DOCWISE_FLASH_MODEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    monkeypatch.setenv("DOCWISE_PRO_MODEL", "custom-pro")
    monkeypatch.setenv("DOCWISE_TEMPERATURE", "not-a-number")

    config = load_config()

    assert config.api_key == "from-env"
    assert config.pro_model == "custom-pro"
    assert config.flash_model == DEFAULT_FLASH_MODEL
    assert config.temperature == 0.2
    assert config.model_for_tier("pro") == "custom-pro"
    assert config.model_for_tier("flash") == DEFAULT_FLASH_MODEL


def test_explicit_key_wins_over_env(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "from-env")
    assert load_config("typed-in").api_key == "typed-in"
    assert require_api_key(load_config("typed-in")) == "typed-in"


def test_mask_key():
    assert mask_key("abcdef1234567890") == "abcdef...7890"
    assert mask_key("short") == "******"
    assert mask_key(None) == ""
