"""StaticFallbackResponder -- 全部 provider 不可用时的离线回答

按有序的 (predicate, template_id) 规则对 prompt 归类（首个命中生效），
渲染对应话题的固定段落，并插入 agent、时间、最后一次错误和原始 prompt。
给定相同输入（含时钟）输出确定；任何输入都不抛异常。
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

# 插值前的截断长度
MAX_PROMPT_CHARS = 2000
MAX_ERROR_CHARS = 500
MAX_AGENT_ID_CHARS = 100

GENERIC_TEMPLATE = "generic"


def keyword_predicate(*keywords: str) -> Callable[[str], bool]:
    """不区分大小写的子串匹配谓词"""
    lowered = tuple(k.lower() for k in keywords)

    def _match(prompt: str) -> bool:
        text = prompt.lower()
        return any(k in text for k in lowered)

    return _match


@dataclass(frozen=True)
class TopicRule:
    """话题规则：predicate 命中时使用 template_id 对应的段落"""

    template_id: str
    predicate: Callable[[str], bool]


DEFAULT_TOPIC_RULES: tuple[TopicRule, ...] = (
    TopicRule(
        "pricing",
        keyword_predicate("price", "cost", "pricing", "plan", "subscription", "fee", "bill"),
    ),
    TopicRule(
        "technical",
        keyword_predicate(
            "api", "integration", "code", "developer", "technical", "setup", "install"
        ),
    ),
    TopicRule(
        "service",
        keyword_predicate(
            "service", "feature", "capability", "support", "help", "documentation"
        ),
    ),
)

TOPIC_TEMPLATES: dict[str, str] = {
    "pricing": (
        "Based on your question about pricing, here's what I can tell you:\n"
        "- We offer multiple service tiers to fit different needs and budgets\n"
        "- Our pricing is transparent with no hidden fees\n"
        "- We provide detailed documentation on our pricing structure\n"
        "- You can contact our sales team for personalized quotes"
    ),
    "technical": (
        "Based on your technical question, here's what I can tell you:\n"
        "- Our platform supports multiple integration methods\n"
        "- We provide comprehensive API documentation\n"
        "- Our technical team is available for complex implementation questions\n"
        "- We offer developer resources and code examples"
    ),
    "service": (
        "Based on your question about our services, here's what I can tell you:\n"
        "- We offer a range of AI-powered services for lead generation and management\n"
        "- Our platform includes multi-model AI support with automatic fallback\n"
        "- We provide 24/7 support and comprehensive documentation\n"
        "- Our services are designed to scale with your business needs"
    ),
    GENERIC_TEMPLATE: (
        "Based on your question, here's what I can tell you:\n"
        "- Our AI system supports multiple providers with automatic fallback\n"
        "- We prioritize reliability and uptime for all our services\n"
        "- Our platform is designed to handle complex queries and conversations\n"
        "- We continuously monitor and improve our AI capabilities"
    ),
}

_MESSAGE_TEMPLATE = """I'm currently experiencing connectivity issues with my AI providers, but I'm here to help!

**Current Status:** {error}
**Time:** {timestamp}
**Agent:** {agent_id}

{context}

**What's happening:**
- All our AI agents support multi-model fallback for reliability
- We use Anthropic Claude, Google Gemini, and local Ollama models
- Your question has been logged and I'll provide a detailed response once reconnected

**In the meantime, you can:**
- Try asking a different question
- Check our documentation
- Contact our support team directly
- Review our service offerings and pricing

**Your original question:**
"{prompt}"

What else can I help you with?"""


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def _error_text(error: BaseException | None) -> str:
    if error is None:
        return "Unknown error"
    try:
        message = getattr(error, "message", None) or str(error)
    except Exception:
        return type(error).__name__
    return message or type(error).__name__


def _utc_now() -> datetime:
    return datetime.now(UTC)


class StaticFallbackResponder:
    """静态降级回答渲染器"""

    def __init__(
        self,
        rules: tuple[TopicRule, ...] = DEFAULT_TOPIC_RULES,
        templates: dict[str, str] | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._rules = rules
        self._templates = templates if templates is not None else TOPIC_TEMPLATES
        self._clock = clock

    def classify(self, prompt: str) -> str:
        """返回首个命中规则的 template_id，全部未命中时返回 generic"""
        for rule in self._rules:
            if rule.predicate(prompt):
                return rule.template_id
        return GENERIC_TEMPLATE

    def render(
        self,
        prompt: str,
        agent_id: str,
        last_error: BaseException | None,
    ) -> str:
        """渲染离线回答

        Args:
            prompt: 原始 prompt（插值前截断）
            agent_id: 发起调用的 agent
            last_error: 降级链中最后一次失败的异常

        Returns:
            完整的离线回答文本
        """
        prompt_text = prompt if isinstance(prompt, str) else str(prompt)
        template_id = self.classify(prompt_text)
        context = self._templates.get(template_id) or TOPIC_TEMPLATES[GENERIC_TEMPLATE]

        return _MESSAGE_TEMPLATE.format(
            error=_truncate(_error_text(last_error), MAX_ERROR_CHARS),
            timestamp=self._clock().strftime("%Y-%m-%d %H:%M:%S %Z").strip(),
            agent_id=_truncate(str(agent_id), MAX_AGENT_ID_CHARS),
            context=context,
            prompt=_truncate(prompt_text, MAX_PROMPT_CHARS),
        )
