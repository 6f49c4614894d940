"""AgentGate Provider -- 多 provider 文本生成与降级

provider 包的公开接口导出。
"""

from .anthropic_adapter import AnthropicAdapter
from .base_adapter import ProviderAdapter

# 配置
from .config import ProviderConfig, load_provider_config
from .cost import CostCalculator, PricingTable

# 异常
from .exceptions import (
    InvalidRequestError,
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
    SafetyRejectionError,
    UnsupportedProviderError,
)

# 核心组件
from .fallback import FallbackOrchestrator
from .google_adapter import GoogleAdapter

# 数据模型
from .models import (
    CandidateChain,
    ChainCandidate,
    GenerationOutcome,
    GenerationRequest,
    ProviderResult,
)
from .ollama_adapter import OllamaAdapter
from .pricing_seed import pricing_entries_from_litellm, seed_pricing_if_empty
from .router import DEFAULT_PROFILE, AgentProfile, AgentRouter, load_agent_profiles
from .static_fallback import StaticFallbackResponder, TopicRule
from .usage import UsageRecorder

__all__ = [
    "GenerationRequest",
    "GenerationOutcome",
    "ProviderResult",
    "ChainCandidate",
    "CandidateChain",
    "AgentProfile",
    "AgentRouter",
    "DEFAULT_PROFILE",
    "load_agent_profiles",
    "ProviderAdapter",
    "OllamaAdapter",
    "GoogleAdapter",
    "AnthropicAdapter",
    "CostCalculator",
    "PricingTable",
    "pricing_entries_from_litellm",
    "seed_pricing_if_empty",
    "UsageRecorder",
    "StaticFallbackResponder",
    "TopicRule",
    "FallbackOrchestrator",
    "ProviderConfig",
    "load_provider_config",
    "ProviderError",
    "ProviderTimeoutError",
    "ProviderResponseError",
    "SafetyRejectionError",
    "UnsupportedProviderError",
    "InvalidRequestError",
]
