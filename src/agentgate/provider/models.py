"""数据模型 -- GenerationRequest + ProviderResult + GenerationOutcome + 降级链"""

from agentgate.core.models import STATIC_MODEL, ReasoningEffort
from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenerationRequest(BaseModel):
    """一次文本生成请求（构造后不可变）"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt: str = Field(min_length=1, description="用户输入，不可为空")
    web_search: bool = Field(default=False, alias="webSearch", description="是否启用联网搜索")
    deep_research: bool = Field(
        default=False, alias="deepResearch", description="是否启用深度研究"
    )
    reasoning_effort: ReasoningEffort = Field(
        default=ReasoningEffort.LOW,
        alias="reasoningEffort",
        description="推理强度",
    )
    preferred_provider: str | None = Field(
        default=None,
        alias="preferredProvider",
        description="偏好 provider 或 profile 名称，决定降级链",
    )
    caller_id: str = Field(default="anonymous", alias="callerId", description="调用方标识")

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt 不可为空白")
        return value


class ChainCandidate(BaseModel):
    """降级链中的单个候选"""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(description="provider 标识")
    model: str = Field(description="模型名称")
    priority: int = Field(ge=1, description="优先级，1 为主候选")


class CandidateChain(BaseModel):
    """某个 agent 的有序候选列表（不为空）

    顺序即调用顺序；priority 仅用于区分主候选与降级候选。
    """

    model_config = ConfigDict(frozen=True)

    agent_id: str = Field(description="agent 标识")
    profile: str = Field(description="解析得到的 profile 名称")
    candidates: tuple[ChainCandidate, ...] = Field(min_length=1)

    @property
    def primary(self) -> ChainCandidate:
        return self.candidates[0]


class ProviderResult(BaseModel):
    """适配器成功调用的规范化结果"""

    text: str = Field(description="生成文本")
    provider_used: str = Field(description="实际响应的 provider")
    model: str = Field(default="", description="实际使用的模型")
    input_tokens: int = Field(default=0, ge=0, description="输入 token 数")
    output_tokens: int = Field(default=0, ge=0, description="输出 token 数")


class GenerationOutcome(BaseModel):
    """对外可见的生成结果

    fallback_used: 实际使用的候选不是链首（含静态降级）时为 True
    """

    text: str
    fallback_used: bool = False
    provider_used: str
    model_used: str = ""
    agent_id: str = ""

    @property
    def is_static_fallback(self) -> bool:
        return self.provider_used == STATIC_MODEL
