"""日志配置

structlog 与标准库 logging 共用一条渲染链：第三方库（httpx、LiteLLM、uvicorn）
的日志也带上 request_id / caller_id 等 contextvars 字段。
- dev（默认）: ConsoleRenderer 彩色输出
- json: 每行一个 JSON 对象
可选 Logfire 导出由 LOGFIRE_SEND_TO_LOGFIRE 控制，失败时只保留本地日志。
"""

import logging
import os

import structlog

SERVICE_NAME = "agentgate"

# 这些库在 INFO 级别逐请求打印，降到 WARNING
_NOISY_LOGGERS = ("LiteLLM", "LiteLLM Router", "httpx", "httpcore")


def _add_service(
    logger: logging.Logger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _parse_level(value: str) -> int:
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 与根 logger

    Args:
        log_format: "dev" 或 "json"，None 时读取 AGENTGATE_LOG_FORMAT
        log_level: 日志级别名，None 时读取 AGENTGATE_LOG_LEVEL（非法值按 INFO）
    """
    log_format = (log_format or os.environ.get("AGENTGATE_LOG_FORMAT", "dev")).lower()
    level = _parse_level(log_level or os.environ.get("AGENTGATE_LOG_LEVEL", "INFO"))

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
        pre_chain.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def setup_logfire(app=None) -> bool:
    """按需启用 Logfire

    仅当 LOGFIRE_SEND_TO_LOGFIRE=true 时导入 logfire（extra 依赖）并注册 FastAPI 插桩。

    Returns:
        True 如果 Logfire 已启用
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name=SERVICE_NAME)
        if app is not None:
            logfire.instrument_fastapi(app)
    except Exception as e:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return False
    return True
