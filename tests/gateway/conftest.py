"""gateway 测试配置 -- 手动装配 app.state（绕过 lifespan）"""

import os
from collections.abc import AsyncGenerator
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from agentgate.core.models import PricingEntry
from agentgate.core.store import create_store_group
from agentgate.provider import (
    AgentRouter,
    CostCalculator,
    FallbackOrchestrator,
    ProviderResult,
    StaticFallbackResponder,
    UsageRecorder,
)
from httpx import ASGITransport, AsyncClient


def make_adapter(provider: str, text: str = "ok") -> AsyncMock:
    adapter = AsyncMock()
    adapter.provider = provider
    adapter.invoke = AsyncMock(
        return_value=ProviderResult(
            text=text,
            provider_used=provider,
            input_tokens=10,
            output_tokens=5,
        )
    )
    adapter.health_check = AsyncMock(return_value=True)
    return adapter


@pytest.fixture
def adapters() -> dict[str, AsyncMock]:
    """三个 provider 的 mock 适配器，默认全部成功"""
    return {
        name: make_adapter(name, text=f"{name} says hi")
        for name in ("ollama", "google", "anthropic")
    }


@pytest_asyncio.fixture
async def gateway_app(tmp_path: Path, adapters):
    """创建测试用 FastAPI app 实例"""
    os.environ["AGENTGATE_DB_PATH"] = str(tmp_path / "sqlite" / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from agentgate.gateway.main import create_app

    app = create_app()

    # 手动初始化（绕过 lifespan）
    store_group = await create_store_group(str(tmp_path / "sqlite" / "test.db"))
    await store_group.pricing_store.upsert_pricing(
        PricingEntry(
            provider="ollama",
            model="glm4:9b",
            input_cost_per_1k=Decimal("1.0"),
            output_cost_per_1k=Decimal("2.0"),
        )
    )
    agent_router = AgentRouter()
    cost_calculator = CostCalculator(pricing_store=store_group.pricing_store)
    usage_recorder = UsageRecorder(store_group.usage_store)

    app.state.store_group = store_group
    app.state.agent_router = agent_router
    app.state.adapters = adapters
    app.state.cost_calculator = cost_calculator
    app.state.usage_recorder = usage_recorder
    app.state.orchestrator = FallbackOrchestrator(
        router=agent_router,
        adapters=adapters,
        cost_calculator=cost_calculator,
        usage_recorder=usage_recorder,
        static_responder=StaticFallbackResponder(),
        timeout_s=5,
    )

    yield app

    await store_group.conn.close()
    for key in ["AGENTGATE_DB_PATH", "LOGFIRE_SEND_TO_LOGFIRE"]:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(gateway_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=gateway_app),
        base_url="http://test",
    ) as ac:
        yield ac
