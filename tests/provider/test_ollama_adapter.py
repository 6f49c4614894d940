"""OllamaAdapter 测试 -- 请求构建、响应解析、错误包装、健康检查"""

import json

import httpx
import pytest
from agentgate.provider.exceptions import (
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from agentgate.provider.models import GenerationRequest
from agentgate.provider.ollama_adapter import OllamaAdapter

BASE_URL = "http://ollama.test:11434"


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "model": "mistral",
            "response": "Bonjour",
            "done": True,
            "prompt_eval_count": 12,
            "eval_count": 4,
        },
    )


class TestOllamaInvoke:
    async def test_success_parses_text_and_tokens(self, mock_http, sample_request):
        client, sent = mock_http(_ok)
        adapter = OllamaAdapter(BASE_URL, http_client=client)

        result = await adapter.invoke(sample_request, "mistral")

        assert result.text == "Bonjour"
        assert result.provider_used == "ollama"
        assert result.input_tokens == 12
        assert result.output_tokens == 4
        assert str(sent[0].url) == f"{BASE_URL}/api/generate"

    async def test_body_is_non_streaming_and_ignores_flags(self, mock_http):
        client, sent = mock_http(_ok)
        adapter = OllamaAdapter(BASE_URL, http_client=client)
        request = GenerationRequest(
            prompt="hi", webSearch=True, deepResearch=True, reasoningEffort="high"
        )

        await adapter.invoke(request, "glm4:9b")

        body = json.loads(sent[0].content)
        assert body["model"] == "glm4:9b"
        assert body["prompt"] == "hi"
        assert body["stream"] is False
        assert "tools" not in body
        assert body["options"]["num_ctx"] == 4096

    async def test_missing_token_counts_default_to_zero(self, mock_http, sample_request):
        client, _ = mock_http(lambda r: httpx.Response(200, json={"response": "x"}))
        adapter = OllamaAdapter(BASE_URL, http_client=client)

        result = await adapter.invoke(sample_request, "mistral")

        assert result.input_tokens == 0
        assert result.output_tokens == 0

    async def test_non_2xx_raises_provider_error_with_status(self, mock_http, sample_request):
        client, _ = mock_http(lambda r: httpx.Response(500, text="boom"))
        adapter = OllamaAdapter(BASE_URL, http_client=client)

        with pytest.raises(ProviderError) as exc_info:
            await adapter.invoke(sample_request, "mistral")

        assert exc_info.value.http_status == 500
        assert exc_info.value.provider == "ollama"
        assert "Ollama API error: 500" in exc_info.value.message

    async def test_error_field_in_body_raises(self, mock_http, sample_request):
        client, _ = mock_http(
            lambda r: httpx.Response(200, json={"error": "model 'x' not found"})
        )
        adapter = OllamaAdapter(BASE_URL, http_client=client)

        with pytest.raises(ProviderError, match="not found"):
            await adapter.invoke(sample_request, "x")

    async def test_invalid_json_raises_response_error(self, mock_http, sample_request):
        client, _ = mock_http(lambda r: httpx.Response(200, text="<html>"))
        adapter = OllamaAdapter(BASE_URL, http_client=client)

        with pytest.raises(ProviderResponseError):
            await adapter.invoke(sample_request, "mistral")

    async def test_missing_response_field_raises_response_error(
        self, mock_http, sample_request
    ):
        client, _ = mock_http(lambda r: httpx.Response(200, json={"done": True}))
        adapter = OllamaAdapter(BASE_URL, http_client=client)

        with pytest.raises(ProviderResponseError):
            await adapter.invoke(sample_request, "mistral")

    async def test_timeout_raises_timeout_error(self, mock_http, sample_request):
        def _timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client, _ = mock_http(_timeout)
        adapter = OllamaAdapter(BASE_URL, timeout_s=3, http_client=client)

        with pytest.raises(ProviderTimeoutError) as exc_info:
            await adapter.invoke(sample_request, "mistral")

        assert exc_info.value.timeout_s == 3

    async def test_connection_error_raises_provider_error(self, mock_http, sample_request):
        def _refused(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client, _ = mock_http(_refused)
        adapter = OllamaAdapter(BASE_URL, http_client=client)

        with pytest.raises(ProviderError) as exc_info:
            await adapter.invoke(sample_request, "mistral")

        assert exc_info.value.http_status is None
        assert isinstance(exc_info.value.cause, httpx.ConnectError)


class TestOllamaHealthCheck:
    async def test_healthy(self, mock_http):
        client, sent = mock_http(lambda r: httpx.Response(200, json={"models": []}))
        adapter = OllamaAdapter(BASE_URL, http_client=client)

        assert await adapter.health_check() is True
        assert str(sent[0].url) == f"{BASE_URL}/api/tags"

    async def test_unreachable_returns_false(self, mock_http):
        def _refused(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client, _ = mock_http(_refused)
        adapter = OllamaAdapter(BASE_URL, http_client=client)

        assert await adapter.health_check() is False
