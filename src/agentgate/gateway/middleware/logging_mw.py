"""LoggingMiddleware -- 请求级日志

每个 HTTP 请求分配一个 request_id（ULID），绑定到 structlog contextvars，
同一请求内的降级链日志都带上它。响应头 X-Request-ID 返回给调用方。
503 表示整条降级链耗尽，按 warning 记录。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"

log = structlog.get_logger()


def _duration_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())
        start = time.monotonic()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        await log.ainfo("request_started")

        try:
            response = await call_next(request)
        except Exception as e:
            await log.aexception(
                "request_failed",
                duration_ms=_duration_ms(start),
                error_type=type(e).__name__,
            )
            raise

        if response.status_code == 503:
            await log.awarning(
                "request_degraded",
                status_code=response.status_code,
                duration_ms=_duration_ms(start),
            )
        else:
            await log.ainfo(
                "request_completed",
                status_code=response.status_code,
                duration_ms=_duration_ms(start),
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
