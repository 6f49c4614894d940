"""用量与价格路由

GET /api/ai/usage: 调用方在时间窗口内的用量汇总（默认最近 30 天）。
GET /api/ai/agents: 已配置的 agent profile 及其候选链。
GET /api/ai/agents/{agent_id}/performance: agent 的延迟、成本和状态分布。
POST /api/ai/pricing: 写入价格条目并刷新成本计算器缓存。
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import structlog
from agentgate.core.config import USAGE_DEFAULT_WINDOW_DAYS
from agentgate.core.models import PricingEntry
from agentgate.core.store import StoreGroup
from agentgate.provider import AgentRouter, CostCalculator
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from starlette.responses import JSONResponse

from ..deps import get_agent_router, get_caller_id, get_cost_calculator, get_store_group

log = structlog.get_logger()

router = APIRouter()


class UsageItem(BaseModel):
    provider: str
    agent_id: str = Field(serialization_alias="agentId")
    total_tokens: int = Field(serialization_alias="totalTokens")
    total_cost_usd: float = Field(serialization_alias="totalCostUsd")
    count: int


class UsageResponse(BaseModel):
    """用量汇总响应"""

    caller_id: str = Field(serialization_alias="callerId")
    start_date: str = Field(serialization_alias="startDate")
    end_date: str = Field(serialization_alias="endDate")
    usage: list[UsageItem]


class PerformanceItem(BaseModel):
    provider: str
    model: str
    avg_latency_ms: float = Field(serialization_alias="avgLatencyMs")
    avg_cost_usd: float = Field(serialization_alias="avgCostUsd")
    count: int
    count_by_status: dict[str, int] = Field(serialization_alias="countByStatus")


class PricingRequest(BaseModel):
    """价格条目写入请求"""

    model_config = ConfigDict(populate_by_name=True)

    provider: str = Field(min_length=1)
    model: str = Field(min_length=1)
    input_cost_per_1k: Decimal = Field(ge=0, alias="inputCostPer1k")
    output_cost_per_1k: Decimal = Field(ge=0, alias="outputCostPer1k")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@router.get("/api/ai/usage")
async def get_usage(
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    caller_id: str = Depends(get_caller_id),
    store_group: StoreGroup = Depends(get_store_group),
):
    """调用方用量汇总，按 (provider, agent_id) 分组"""
    end = _as_utc(end_date) if end_date else datetime.now(UTC)
    start = _as_utc(start_date) if start_date else end - timedelta(days=USAGE_DEFAULT_WINDOW_DAYS)
    if start > end:
        return JSONResponse(
            status_code=422,
            content={"detail": "startDate 不能晚于 endDate"},
        )

    aggregates = await store_group.usage_store.aggregate_usage(caller_id, start, end)
    response = UsageResponse(
        caller_id=caller_id,
        start_date=start.isoformat(),
        end_date=end.isoformat(),
        usage=[
            UsageItem(
                provider=a.provider,
                agent_id=a.agent_id,
                total_tokens=a.total_tokens,
                total_cost_usd=float(a.total_cost_usd),
                count=a.count,
            )
            for a in aggregates
        ],
    )
    return response.model_dump(by_alias=True)


@router.get("/api/ai/agents")
async def list_agents(agent_router: AgentRouter = Depends(get_agent_router)):
    """列出 agent profile 及其候选链"""
    return {
        "defaultProfile": agent_router.default_profile,
        "agents": [
            {
                "name": p.name,
                "agentId": p.agent_id,
                "description": p.description,
                "aliases": p.aliases,
                "candidates": [c.model_dump() for c in p.candidates],
            }
            for p in agent_router.list_all()
        ],
    }


@router.get("/api/ai/agents/{agent_id}/performance")
async def get_agent_performance(
    agent_id: str,
    store_group: StoreGroup = Depends(get_store_group),
):
    """agent 性能汇总，按 (provider, model) 分组"""
    aggregates = await store_group.usage_store.aggregate_performance(agent_id)
    return {
        "agentId": agent_id,
        "performance": [
            PerformanceItem(
                provider=a.provider,
                model=a.model,
                avg_latency_ms=a.avg_latency_ms,
                avg_cost_usd=float(a.avg_cost_usd),
                count=a.count,
                count_by_status=a.count_by_status,
            ).model_dump(by_alias=True)
            for a in aggregates
        ],
    }


@router.post("/api/ai/pricing")
async def upsert_pricing(
    body: PricingRequest,
    store_group: StoreGroup = Depends(get_store_group),
    cost_calculator: CostCalculator = Depends(get_cost_calculator),
):
    """写入价格条目，并显式刷新成本计算器缓存"""
    entry = PricingEntry(
        provider=body.provider,
        model=body.model,
        input_cost_per_1k=body.input_cost_per_1k,
        output_cost_per_1k=body.output_cost_per_1k,
    )
    await store_group.pricing_store.upsert_pricing(entry)
    refreshed = await cost_calculator.refresh()
    log.info(
        "pricing_upserted",
        provider=entry.provider,
        model=entry.model,
        refreshed=refreshed,
    )
    return {
        "provider": entry.provider,
        "model": entry.model,
        "inputCostPer1k": str(entry.input_cost_per_1k),
        "outputCostPer1k": str(entry.output_cost_per_1k),
        "refreshed": refreshed,
        "entries": len(cost_calculator.table),
    }
