"""GoogleAdapter 测试 -- flag 映射、thought 过滤、安全拦截"""

import json

import httpx
import pytest
from agentgate.provider.exceptions import (
    ProviderError,
    ProviderResponseError,
    SafetyRejectionError,
)
from agentgate.provider.google_adapter import GoogleAdapter
from agentgate.provider.models import GenerationRequest

BASE_URL = "https://gemini.test"


def _response(parts, finish_reason="STOP", usage=None) -> dict:
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": parts},
                "finishReason": finish_reason,
            }
        ],
        "usageMetadata": usage or {"promptTokenCount": 8, "candidatesTokenCount": 16},
    }


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=_response([{"text": "Hello"}, {"text": " there"}]))


class TestGoogleRequest:
    async def test_url_and_api_key_header(self, mock_http, sample_request):
        client, sent = mock_http(_ok)
        adapter = GoogleAdapter(BASE_URL, api_key="g-key", http_client=client)

        await adapter.invoke(sample_request, "gemini-2.0-flash")

        request = sent[0]
        assert str(request.url) == f"{BASE_URL}/v1beta/models/gemini-2.0-flash:generateContent"
        assert request.headers["x-goog-api-key"] == "g-key"
        body = json.loads(request.content)
        assert body["contents"][0]["parts"][0]["text"] == "Hello, world!"
        assert len(body["safetySettings"]) == 4
        assert "tools" not in body
        # 非 thinking 模型不带 thinkingConfig
        assert "thinkingConfig" not in body["generationConfig"]

    @pytest.mark.parametrize(
        ("effort", "budget"),
        [("low", 0), ("medium", 4096), ("high", 16384)],
    )
    async def test_reasoning_effort_maps_to_thinking_budget(self, mock_http, effort, budget):
        client, sent = mock_http(_ok)
        adapter = GoogleAdapter(BASE_URL, http_client=client)

        await adapter.invoke(
            GenerationRequest(prompt="q", reasoningEffort=effort), "gemini-2.5-pro"
        )

        config = json.loads(sent[0].content)["generationConfig"]
        assert config["thinkingConfig"] == {"thinkingBudget": budget}

    @pytest.mark.parametrize("flag", ["webSearch", "deepResearch"])
    async def test_search_flags_add_google_search_tool(self, mock_http, flag):
        client, sent = mock_http(_ok)
        adapter = GoogleAdapter(BASE_URL, http_client=client)

        await adapter.invoke(GenerationRequest(prompt="q", **{flag: True}), "gemini-2.0-flash")

        assert json.loads(sent[0].content)["tools"] == [{"google_search": {}}]


class TestGoogleResponse:
    async def test_joins_parts_and_reads_usage(self, mock_http, sample_request):
        client, _ = mock_http(_ok)
        adapter = GoogleAdapter(BASE_URL, http_client=client)

        result = await adapter.invoke(sample_request, "gemini-2.0-flash")

        assert result.text == "Hello there"
        assert result.provider_used == "google"
        assert result.input_tokens == 8
        assert result.output_tokens == 16

    async def test_thought_parts_excluded(self, mock_http, sample_request):
        client, _ = mock_http(
            lambda r: httpx.Response(
                200,
                json=_response([{"text": "thinking...", "thought": True}, {"text": "answer"}]),
            )
        )
        adapter = GoogleAdapter(BASE_URL, http_client=client)

        result = await adapter.invoke(sample_request, "gemini-2.5-flash")

        assert result.text == "answer"

    async def test_prompt_block_raises_safety_rejection(self, mock_http, sample_request):
        client, _ = mock_http(
            lambda r: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})
        )
        adapter = GoogleAdapter(BASE_URL, http_client=client)

        with pytest.raises(SafetyRejectionError):
            await adapter.invoke(sample_request, "gemini-2.0-flash")

    async def test_safety_finish_reason_raises_safety_rejection(
        self, mock_http, sample_request
    ):
        client, _ = mock_http(
            lambda r: httpx.Response(200, json=_response([], finish_reason="PROHIBITED_CONTENT"))
        )
        adapter = GoogleAdapter(BASE_URL, http_client=client)

        with pytest.raises(SafetyRejectionError) as exc_info:
            await adapter.invoke(sample_request, "gemini-2.0-flash")

        assert exc_info.value.provider == "google"

    async def test_no_candidates_raises_response_error(self, mock_http, sample_request):
        client, _ = mock_http(lambda r: httpx.Response(200, json={"candidates": []}))
        adapter = GoogleAdapter(BASE_URL, http_client=client)

        with pytest.raises(ProviderResponseError):
            await adapter.invoke(sample_request, "gemini-2.0-flash")

    async def test_http_429_carries_status(self, mock_http, sample_request):
        client, _ = mock_http(lambda r: httpx.Response(429, json={"error": "quota"}))
        adapter = GoogleAdapter(BASE_URL, http_client=client)

        with pytest.raises(ProviderError) as exc_info:
            await adapter.invoke(sample_request, "gemini-2.0-flash")

        assert exc_info.value.http_status == 429
        assert "Google API error: 429" in exc_info.value.message
