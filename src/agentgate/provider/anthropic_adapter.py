"""AnthropicAdapter -- Anthropic Messages API 适配

flag 映射:
    web_search -> web_search 服务端工具（deep_research 时放宽调用次数）
    reasoning_effort -> extended thinking 预算（low 不开启）
"""

from typing import Any

from agentgate.core.models import ProviderName, ReasoningEffort

from .base_adapter import ProviderAdapter
from .exceptions import SafetyRejectionError
from .models import GenerationRequest, ProviderResult

ANTHROPIC_VERSION = "2023-06-01"

MAX_OUTPUT_TOKENS = 4096

THINKING_BUDGETS: dict[ReasoningEffort, int | None] = {
    ReasoningEffort.LOW: None,
    ReasoningEffort.MEDIUM: 4096,
    ReasoningEffort.HIGH: 16384,
}

WEB_SEARCH_MAX_USES = 3
DEEP_RESEARCH_MAX_USES = 10


class AnthropicAdapter(ProviderAdapter):
    """Anthropic Claude 适配器"""

    provider = ProviderName.ANTHROPIC.value
    display_name = "Anthropic"

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def build_request(
        self, request: GenerationRequest, model: str
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        body: dict[str, Any] = {
            "model": model,
            "max_tokens": MAX_OUTPUT_TOKENS,
            "messages": [{"role": "user", "content": request.prompt}],
        }

        budget = THINKING_BUDGETS[request.reasoning_effort]
        if budget is not None:
            # 开启 thinking 时 max_tokens 必须大于预算，且不能设置 temperature
            body["thinking"] = {"type": "enabled", "budget_tokens": budget}
            body["max_tokens"] = budget + MAX_OUTPUT_TOKENS
        else:
            body["temperature"] = 0.7

        if request.web_search or request.deep_research:
            body["tools"] = [
                {
                    "type": "web_search_20250305",
                    "name": "web_search",
                    "max_uses": (
                        DEEP_RESEARCH_MAX_USES
                        if request.deep_research
                        else WEB_SEARCH_MAX_USES
                    ),
                }
            ]

        return f"{self._base_url}/messages", self._headers(), body

    def parse_response(self, data: dict[str, Any], model: str) -> ProviderResult:
        if data.get("stop_reason") == "refusal":
            raise SafetyRejectionError(
                "Anthropic 以内容安全为由拒绝生成",
                provider=self.provider,
            )

        text = "".join(
            block.get("text", "")
            for block in data["content"]
            if block.get("type") == "text"
        )
        usage = data.get("usage") or {}
        return ProviderResult(
            text=text,
            provider_used=self.provider,
            model=data.get("model") or model,
            input_tokens=usage.get("input_tokens") or 0,
            output_tokens=usage.get("output_tokens") or 0,
        )

    def health_request(self) -> tuple[str, dict[str, str]]:
        return f"{self._base_url}/models", self._headers()
