"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + provider 组件初始化 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
import structlog
from agentgate.core.config import get_db_path
from agentgate.core.store import create_store_group
from agentgate.provider import (
    AgentRouter,
    AnthropicAdapter,
    CostCalculator,
    FallbackOrchestrator,
    GoogleAdapter,
    OllamaAdapter,
    ProviderAdapter,
    ProviderConfig,
    StaticFallbackResponder,
    UsageRecorder,
    load_agent_profiles,
    load_provider_config,
    seed_pricing_if_empty,
)
from fastapi import FastAPI

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import generate, health, usage

log = structlog.get_logger()


def build_adapters(
    config: ProviderConfig,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, ProviderAdapter]:
    """按配置创建三个 provider 适配器，key 为 provider 标识"""
    adapters: list[ProviderAdapter] = [
        OllamaAdapter(
            base_url=config.ollama_base_url,
            timeout_s=config.timeout_s,
            http_client=http_client,
        ),
        GoogleAdapter(
            base_url=config.google_base_url,
            api_key=config.google_api_key.get_secret_value(),
            timeout_s=config.timeout_s,
            http_client=http_client,
        ),
        AnthropicAdapter(
            base_url=config.anthropic_base_url,
            api_key=config.anthropic_api_key.get_secret_value(),
            timeout_s=config.timeout_s,
            http_client=http_client,
        ),
    ]
    return {adapter.provider: adapter for adapter in adapters}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 和 provider 组件，关闭时排空用量队列并清理连接"""
    # 启动：初始化 Store
    store_group = await create_store_group(get_db_path())
    app.state.store_group = store_group

    provider_config = load_provider_config()
    app.state.provider_config = provider_config

    profiles = (
        load_agent_profiles(provider_config.agent_profiles_path)
        if provider_config.agent_profiles_path
        else None
    )
    agent_router = AgentRouter(profiles, default_profile=provider_config.default_profile)
    app.state.agent_router = agent_router

    http_client = httpx.AsyncClient(timeout=provider_config.timeout_s)
    app.state.http_client = http_client
    adapters = build_adapters(provider_config, http_client)
    app.state.adapters = adapters

    # 价格表：空表时写入 litellm 种子价格，然后预热缓存
    await seed_pricing_if_empty(store_group.pricing_store, agent_router.all_candidates())
    cost_calculator = CostCalculator(pricing_store=store_group.pricing_store)
    await cost_calculator.ensure_loaded()
    app.state.cost_calculator = cost_calculator

    usage_recorder = UsageRecorder(
        store_group.usage_store,
        max_queue_size=provider_config.usage_queue_size,
    )
    await usage_recorder.start()
    app.state.usage_recorder = usage_recorder

    app.state.orchestrator = FallbackOrchestrator(
        router=agent_router,
        adapters=adapters,
        cost_calculator=cost_calculator,
        usage_recorder=usage_recorder,
        static_responder=StaticFallbackResponder(),
        timeout_s=provider_config.timeout_s,
    )
    log.info(
        "provider_service_initialized",
        profiles=[p.name for p in agent_router.list_all()],
        default_profile=agent_router.default_profile,
        timeout_s=provider_config.timeout_s,
        pricing_entries=len(cost_calculator.table),
    )

    yield

    # 关闭：排空用量队列，再关闭 HTTP 客户端与数据库连接
    await usage_recorder.stop()
    await http_client.aclose()
    await store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="AgentGate",
        version="0.1.0",
        description="多 provider 文本生成网关：有序降级链、用量账本与成本统计",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    # 注册路由
    app.include_router(generate.router, tags=["generate"])
    app.include_router(usage.router, tags=["usage"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
