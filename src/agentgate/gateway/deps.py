"""依赖注入模块 -- 通过 FastAPI Depends 注入组件实例

组件实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from agentgate.core.store import StoreGroup
from agentgate.provider import AgentRouter, CostCalculator, FallbackOrchestrator
from fastapi import Request

from .middleware.trace_mw import caller_id_from


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_orchestrator(request: Request) -> FallbackOrchestrator:
    """从 app.state 获取 FallbackOrchestrator 实例"""
    return request.app.state.orchestrator


def get_agent_router(request: Request) -> AgentRouter:
    return request.app.state.agent_router


def get_cost_calculator(request: Request) -> CostCalculator:
    return request.app.state.cost_calculator


def get_caller_id(request: Request) -> str:
    """X-Caller-ID 请求头，缺失时为 anonymous"""
    return caller_id_from(request)
