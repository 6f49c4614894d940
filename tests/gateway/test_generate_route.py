"""POST /api/integrations/ai/generate-text 测试"""

from decimal import Decimal
from unittest.mock import AsyncMock

from agentgate.core.models import UsageStatus
from agentgate.provider import ProviderError

URL = "/api/integrations/ai/generate-text"


class TestGenerateText:
    async def test_primary_success_returns_200(self, client, adapters, gateway_app):
        resp = await client.post(
            URL,
            json={"prompt": "Hello", "modelProvider": "ollama"},
            headers={"X-Caller-ID": "caller-1"},
        )

        assert resp.status_code == 200
        assert resp.json() == {
            "text": "ollama says hi",
            "fallbackUsed": False,
            "provider": "ollama",
        }

        await gateway_app.state.usage_recorder.flush()
        records = await gateway_app.state.store_group.usage_store.list_usage()
        assert len(records) == 1
        assert records[0].caller_id == "caller-1"
        assert records[0].agent_id == "fast-chat-agent"
        assert records[0].cost_usd == Decimal("0.02")

    async def test_flags_forwarded_to_adapter(self, client, adapters):
        resp = await client.post(
            URL,
            json={
                "prompt": "Research this",
                "enableWebSearch": True,
                "enableDeepResearch": True,
                "reasoningEffort": "high",
                "modelProvider": "claude",
            },
        )

        assert resp.status_code == 200
        request, model = adapters["anthropic"].invoke.call_args.args
        assert request.web_search is True
        assert request.deep_research is True
        assert request.reasoning_effort == "high"
        assert request.caller_id == "anonymous"
        assert model == "claude-sonnet-4-5-20250929"

    async def test_fallback_used_flag(self, client, adapters):
        adapters["google"].invoke = AsyncMock(side_effect=ProviderError("down", provider="google"))

        resp = await client.post(URL, json={"prompt": "Hello", "modelProvider": "google"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["fallbackUsed"] is True
        assert body["provider"] == "anthropic"

    async def test_all_fail_returns_503_with_text(self, client, adapters, gateway_app):
        for adapter in adapters.values():
            adapter.invoke = AsyncMock(side_effect=ProviderError("down"))

        resp = await client.post(
            URL, json={"prompt": "What's your pricing?", "modelProvider": "cloud-first"}
        )

        assert resp.status_code == 503
        assert "X-Request-ID" in resp.headers
        body = resp.json()
        assert body["provider"] == "static-fallback"
        assert body["fallbackUsed"] is True
        assert "pricing" in body["text"]

        await gateway_app.state.usage_recorder.flush()
        records = await gateway_app.state.store_group.usage_store.list_usage()
        assert len(records) == 4
        assert all(r.status == UsageStatus.FAILED for r in records)

    async def test_empty_prompt_returns_422(self, client, adapters):
        resp = await client.post(URL, json={"prompt": "  "})

        assert resp.status_code == 422
        assert resp.json()["errors"]
        for adapter in adapters.values():
            adapter.invoke.assert_not_called()

    async def test_invalid_reasoning_effort_returns_422(self, client):
        resp = await client.post(URL, json={"prompt": "hi", "reasoningEffort": "turbo"})
        assert resp.status_code == 422

    async def test_missing_prompt_returns_422(self, client):
        resp = await client.post(URL, json={})
        assert resp.status_code == 422
