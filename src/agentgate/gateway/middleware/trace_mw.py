"""TraceMiddleware -- 调用方追踪

从 X-Caller-ID 请求头提取调用方标识，绑定为 caller_id，贯穿本次请求的所有日志。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CALLER_HEADER = "X-Caller-ID"
DEFAULT_CALLER_ID = "anonymous"


def caller_id_from(request: Request) -> str:
    """读取调用方标识，缺失或空白时为 anonymous"""
    value = request.headers.get(CALLER_HEADER, "").strip()
    return value or DEFAULT_CALLER_ID


class TraceMiddleware(BaseHTTPMiddleware):
    """调用方追踪中间件 -- 为请求绑定 caller_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        structlog.contextvars.bind_contextvars(caller_id=caller_id_from(request))
        return await call_next(request)
