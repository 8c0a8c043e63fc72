"""Tests for the OpenAI reasoning service adapter."""

import base64
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest
from conftest import build_image

from docverify.clients import OpenAIReasoningService, sniff_image_mime, to_data_url
from docverify.errors import ReasoningServiceError


def _reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.chat.completions.create.return_value = _reply("  recognized  ")
    return client


class TestDataUrls:
    """Tests for image encoding helpers."""

    def test_sniff_png_and_jpeg(self):
        assert sniff_image_mime(build_image(fmt="PNG")) == "image/png"
        assert sniff_image_mime(build_image(fmt="JPEG")) == "image/jpeg"
        assert sniff_image_mime(b"unknown") == "image/png"

    def test_data_url_roundtrip(self):
        payload = build_image(fmt="JPEG")
        url = to_data_url(payload)

        assert url.startswith("data:image/jpeg;base64,")
        assert base64.b64decode(url.split(",", 1)[1]) == payload


class TestOpenAIReasoningService:
    """Tests for request construction and error mapping."""

    def test_recognize_text_request(self, mock_client):
        service = OpenAIReasoningService(client=mock_client, recognition_model="gpt-4o")
        text = service.recognize_text([b"\x89PNG...", b"\xff\xd8..."], "directive", "instruction", 900)

        assert text == "recognized"
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0
        assert kwargs["max_tokens"] == 900
        assert kwargs["messages"][0] == {"role": "system", "content": "directive"}
        content = kwargs["messages"][1]["content"]
        assert content[0] == {"type": "text", "text": "instruction"}
        assert content[1]["image_url"]["url"].startswith("data:image/png;base64,")
        assert content[2]["image_url"]["url"].startswith("data:image/jpeg;base64,")

    def test_analyze_request(self, mock_client):
        service = OpenAIReasoningService(client=mock_client, analysis_model="gpt-4o-mini", temperature=0.1)
        service.analyze("system prompt", ["part one", "part two"])

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.1
        assert [p["text"] for p in kwargs["messages"][1]["content"]] == ["part one", "part two"]

    def test_analyze_model_override(self, mock_client):
        service = OpenAIReasoningService(client=mock_client)
        service.analyze("s", ["p"], model="other-model")

        assert mock_client.chat.completions.create.call_args.kwargs["model"] == "other-model"

    def test_empty_choices(self, mock_client):
        mock_client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        assert OpenAIReasoningService(client=mock_client).analyze("s", ["p"]) == ""

    def test_rate_limit_mapped(self, mock_client):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        response = httpx.Response(429, request=request)
        mock_client.chat.completions.create.side_effect = openai.RateLimitError(
            "quota", response=response, body=None
        )

        with pytest.raises(ReasoningServiceError) as exc_info:
            OpenAIReasoningService(client=mock_client).analyze("s", ["p"])

        assert exc_info.value.rate_limited
        assert exc_info.value.details["http_code"] == 429

    def test_connection_error_mapped(self, mock_client):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        mock_client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)

        with pytest.raises(ReasoningServiceError) as exc_info:
            OpenAIReasoningService(client=mock_client).recognize_text([b"x"], "d", "i")

        assert not exc_info.value.rate_limited
