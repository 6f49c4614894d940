"""OllamaAdapter -- 本地 Ollama /api/generate 适配

Ollama 不支持联网搜索、深度研究与推理强度，相关 flag 被忽略。
"""

from typing import Any

from agentgate.core.models import ProviderName

from .base_adapter import ProviderAdapter
from .exceptions import ProviderError
from .models import GenerationRequest, ProviderResult


class OllamaAdapter(ProviderAdapter):
    """Ollama 适配器（非流式 generate）"""

    provider = ProviderName.OLLAMA.value
    display_name = "Ollama"

    def build_request(
        self, request: GenerationRequest, model: str
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        body = {
            "model": model,
            "prompt": request.prompt,
            "stream": False,
            "options": {
                "temperature": 0.7,
                "top_k": 40,
                "top_p": 0.95,
                "num_ctx": 4096,
            },
        }
        return (
            f"{self._base_url}/api/generate",
            {"Content-Type": "application/json"},
            body,
        )

    def parse_response(self, data: dict[str, Any], model: str) -> ProviderResult:
        # Ollama 在 200 响应中也可能返回 error 字段
        if data.get("error"):
            raise ProviderError(
                f"Ollama API error: {data['error']}",
                provider=self.provider,
            )

        return ProviderResult(
            text=data["response"] or "",
            provider_used=self.provider,
            model=data.get("model") or model,
            input_tokens=data.get("prompt_eval_count") or 0,
            output_tokens=data.get("eval_count") or 0,
        )

    def health_request(self) -> tuple[str, dict[str, str]]:
        return f"{self._base_url}/api/tags", {}
