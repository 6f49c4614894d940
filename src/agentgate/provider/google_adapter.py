"""GoogleAdapter -- Gemini generateContent 适配

flag 映射:
    web_search / deep_research -> google_search 工具
    reasoning_effort -> thinkingConfig.thinkingBudget（仅支持 thinking 的模型）
"""

from typing import Any

from agentgate.core.models import ProviderName, ReasoningEffort

from .base_adapter import ProviderAdapter
from .exceptions import ProviderResponseError, SafetyRejectionError
from .models import GenerationRequest, ProviderResult

# 支持 thinkingConfig 的模型前缀
THINKING_MODEL_PREFIXES = ("gemini-2.5", "gemini-3")

THINKING_BUDGETS: dict[ReasoningEffort, int] = {
    ReasoningEffort.LOW: 0,
    ReasoningEffort.MEDIUM: 4096,
    ReasoningEffort.HIGH: 16384,
}

# 视为内容安全拦截的 finishReason
SAFETY_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}

_SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


class GoogleAdapter(ProviderAdapter):
    """Google Gemini 适配器"""

    provider = ProviderName.GOOGLE.value
    display_name = "Google"

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self._api_key,
        }

    def build_request(
        self, request: GenerationRequest, model: str
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        generation_config: dict[str, Any] = {
            "temperature": 0.7,
            "topK": 40,
            "topP": 0.95,
            "maxOutputTokens": 4096,
            "responseMimeType": "text/plain",
        }
        if model.startswith(THINKING_MODEL_PREFIXES):
            generation_config["thinkingConfig"] = {
                "thinkingBudget": THINKING_BUDGETS[request.reasoning_effort]
            }

        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": generation_config,
            "safetySettings": _SAFETY_SETTINGS,
        }
        if request.web_search or request.deep_research:
            body["tools"] = [{"google_search": {}}]

        return (
            f"{self._base_url}/v1beta/models/{model}:generateContent",
            self._headers(),
            body,
        )

    def parse_response(self, data: dict[str, Any], model: str) -> ProviderResult:
        feedback = data.get("promptFeedback") or {}
        if block_reason := feedback.get("blockReason"):
            raise SafetyRejectionError(
                f"Google 拒绝了该 prompt: {block_reason}",
                provider=self.provider,
            )

        candidates = data.get("candidates") or []
        if not candidates:
            raise ProviderResponseError(
                "Google 响应中没有 candidates",
                provider=self.provider,
            )

        candidate = candidates[0]
        finish_reason = candidate.get("finishReason", "")
        if finish_reason in SAFETY_FINISH_REASONS:
            raise SafetyRejectionError(
                f"Google 以内容安全为由中止生成: {finish_reason}",
                provider=self.provider,
            )

        parts = (candidate.get("content") or {}).get("parts") or []
        # thought part 是模型的推理过程，不属于回答
        text = "".join(p.get("text", "") for p in parts if not p.get("thought"))

        usage = data.get("usageMetadata") or {}
        return ProviderResult(
            text=text,
            provider_used=self.provider,
            model=data.get("modelVersion") or model,
            input_tokens=usage.get("promptTokenCount") or 0,
            output_tokens=usage.get("candidatesTokenCount") or 0,
        )

    def health_request(self) -> tuple[str, dict[str, str]]:
        return f"{self._base_url}/v1beta/models", self._headers()
