"""Tests for provider selection and the provider wrappers.

SDK calls are mocked; no request leaves the process.
"""

import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from beacon.config import settings
from beacon.services.claude_client import ClaudeClient
from beacon.services.llm_client import get_llm_client, split_data_uri, strip_code_fence
from beacon.services.openai_client import OpenAIClient


@pytest.fixture
def no_keys(monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", "")
    monkeypatch.setattr(settings, "anthropic_api_key", "")
    monkeypatch.setattr(settings, "gemini_api_key", "")
    monkeypatch.setattr(settings, "llm_provider", "openai")
    monkeypatch.setattr(settings, "llm_model", "")


class TestHelpers:
    def test_strip_code_fence(self):
        assert strip_code_fence('```json\n{"slides": []}\n```') == '{"slides": []}'
        assert strip_code_fence('  {"slides": []} ') == '{"slides": []}'
        assert strip_code_fence(None) == ""

    def test_split_data_uri(self):
        uri = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8raw").decode()
        assert split_data_uri(uri) == ("image/jpeg", b"\xff\xd8raw")


class TestProviderSelection:
    def test_none_without_keys(self, no_keys):
        assert get_llm_client() is None

    def test_preferred_provider(self, no_keys, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", "sk-test")
        monkeypatch.setattr(settings, "anthropic_api_key", "sk-ant-test")
        monkeypatch.setattr(settings, "llm_provider", "anthropic")
        monkeypatch.setattr(settings, "llm_model", "claude-custom")

        client = get_llm_client()

        assert client.provider == "anthropic"
        assert client.model == "claude-custom"

    def test_falls_back_to_any_configured_key(self, no_keys, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", "sk-test")
        monkeypatch.setattr(settings, "llm_provider", "gemini")
        monkeypatch.setattr(settings, "llm_model", "gemini-custom")

        client = get_llm_client()

        assert client.provider == "openai"
        # The model override belongs to the preferred provider only
        assert client.model == "gpt-4o-mini"


class TestOpenAIClient:
    async def test_json_mode_request(self):
        client = OpenAIClient("sk-test")
        message = SimpleNamespace(content='```json\n{"slides": []}\n```')
        completion = SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason="stop")])
        client.client.chat.completions.create = AsyncMock(return_value=completion)

        text = await client.complete_json("system", "user", max_tokens=1500)

        assert text == '{"slides": []}'
        kwargs = client.client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["max_tokens"] == 1500
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    async def test_describe_image_sends_data_uri(self, png_data_uri):
        client = OpenAIClient("sk-test")
        message = SimpleNamespace(content=" A red square. ")
        client.client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)])
        )

        assert await client.describe_image(png_data_uri, "Describe") == "A red square."
        content = client.client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert content[1]["image_url"]["url"] == png_data_uri


class TestClaudeClient:
    async def test_complete_json_joins_text_blocks(self):
        client = ClaudeClient("sk-ant-test")
        response = SimpleNamespace(
            content=[SimpleNamespace(type="text", text='{"slides": ['), SimpleNamespace(type="text", text="]}")],
            stop_reason="end_turn",
        )
        client.client.messages.create = AsyncMock(return_value=response)

        assert await client.complete_json("system", "user") == '{"slides": []}'
        kwargs = client.client.messages.create.call_args.kwargs
        assert kwargs["system"].startswith("system")

    async def test_describe_image_uses_base64_source(self, png_data_uri):
        client = ClaudeClient("sk-ant-test")
        client.client.messages.create = AsyncMock(
            return_value=SimpleNamespace(content=[SimpleNamespace(type="text", text="A logo ")])
        )

        assert await client.describe_image(png_data_uri, "Describe") == "A logo"
        source = client.client.messages.create.call_args.kwargs["messages"][0]["content"][0]["source"]
        assert source["media_type"] == "image/png"
        assert source["data"] == png_data_uri.partition(",")[2]
