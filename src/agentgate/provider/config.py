"""ProviderConfig -- Provider 配置加载

从环境变量加载各 provider 的地址、密钥与超时，不硬编码密钥。
"""

import os

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class ProviderConfig(BaseModel):
    """Provider 包配置 -- 从环境变量加载

    环境变量:
        OLLAMA_API_BASE_URL: Ollama 地址
        GOOGLE_AI_API_BASE_URL / GOOGLE_AI_API_KEY: Gemini 地址与密钥
        ANTHROPIC_API_BASE_URL / ANTHROPIC_API_KEY: Anthropic 地址与密钥
        AGENTGATE_LLM_TIMEOUT_S: 单次 provider 调用超时（秒，默认 30）
        AGENTGATE_AGENT_PROFILES_PATH: agent profile JSON 配置路径
        AGENTGATE_DEFAULT_PROFILE: 未知偏好时使用的 profile 名称
        AGENTGATE_USAGE_QUEUE_SIZE: 用量写入队列容量
    """

    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama 基础 URL",
    )
    google_base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Google Generative Language API 基础 URL",
    )
    google_api_key: SecretStr = Field(default=SecretStr(""), description="Gemini API key")
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com/v1",
        description="Anthropic API 基础 URL（含版本前缀）",
    )
    anthropic_api_key: SecretStr = Field(
        default=SecretStr(""), description="Anthropic API key"
    )
    timeout_s: int = Field(default=30, ge=1, description="单次 provider 调用超时（秒）")
    agent_profiles_path: str | None = Field(
        default=None,
        description="agent profile JSON 配置路径，None 使用内置配置",
    )
    default_profile: str | None = Field(
        default=None,
        description="默认 profile，None 时优先 fast-local，否则取第一个 profile",
    )
    usage_queue_size: int = Field(default=1000, ge=1, description="用量写入队列容量")


def _read_int(env_var: str, default: int) -> int | None:
    """读取整型环境变量，非法值记录 warning 并返回 None（使用默认值）"""
    val = os.environ.get(env_var)
    if not val:
        return None
    try:
        return int(val)
    except ValueError:
        log.warning(
            "invalid_int_config",
            env_var=env_var,
            value=val,
            fallback=default,
        )
        return None


def load_provider_config() -> ProviderConfig:
    """从环境变量加载 Provider 配置

    Returns:
        ProviderConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("OLLAMA_API_BASE_URL"):
        kwargs["ollama_base_url"] = val

    if val := os.environ.get("GOOGLE_AI_API_BASE_URL"):
        kwargs["google_base_url"] = val

    if val := os.environ.get("GOOGLE_AI_API_KEY"):
        kwargs["google_api_key"] = SecretStr(val)

    if val := os.environ.get("ANTHROPIC_API_BASE_URL"):
        kwargs["anthropic_base_url"] = val

    if val := os.environ.get("ANTHROPIC_API_KEY"):
        kwargs["anthropic_api_key"] = SecretStr(val)

    if val := os.environ.get("AGENTGATE_AGENT_PROFILES_PATH"):
        kwargs["agent_profiles_path"] = val

    if val := os.environ.get("AGENTGATE_DEFAULT_PROFILE"):
        kwargs["default_profile"] = val

    # 非法整数不阻塞启动
    if (timeout_s := _read_int("AGENTGATE_LLM_TIMEOUT_S", 30)) is not None:
        kwargs["timeout_s"] = timeout_s

    if (queue_size := _read_int("AGENTGATE_USAGE_QUEUE_SIZE", 1000)) is not None:
        kwargs["usage_queue_size"] = queue_size

    return ProviderConfig(**kwargs)
