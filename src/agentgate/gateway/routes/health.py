"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性与价格表状态；
            profile=llm 时额外探测每个 provider 适配器。
"""

import structlog
from agentgate.core.store.sqlite_init import verify_wal_mode
from fastapi import APIRouter, Query, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(
    request: Request,
    profile: str | None = Query(
        default=None,
        description="检查配置：core（默认）仅核心检查；llm/full 额外探测各 provider",
    ),
):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性（附带 journal_mode，仅报告）
    2. pricing: 价格表是否已加载（仅报告，不影响就绪状态）
    3. providers: 根据 profile 决定是否逐个探测 provider

    provider 不可达不影响就绪状态，请求会降级到下一个候选或静态回答。
    """
    effective_profile = profile or "core"

    checks: dict = {}
    all_ok = True

    # 1. SQLite 连通性检查
    try:
        store_group = request.app.state.store_group
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
        checks["journal_mode"] = "wal" if await verify_wal_mode(store_group.conn) else "other"
    except Exception as e:
        checks["sqlite"] = f"error: {str(e)}"
        all_ok = False

    # 2. 价格表
    cost_calculator = getattr(request.app.state, "cost_calculator", None)
    if cost_calculator is not None and cost_calculator.loaded:
        checks["pricing_entries"] = len(cost_calculator.table)
    else:
        checks["pricing_entries"] = "not_loaded"

    # 3. provider 探测
    if effective_profile in ("llm", "full"):
        adapters = getattr(request.app.state, "adapters", None) or {}
        providers: dict[str, str] = {}
        for name, adapter in adapters.items():
            healthy = await adapter.health_check()
            providers[name] = "ok" if healthy else "unreachable"
            if not healthy:
                log.warning("provider_unreachable", provider=name)
        checks["providers"] = providers or "skipped"
    else:
        checks["providers"] = "skipped"

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "profile": effective_profile,
            "checks": checks,
        },
    )
