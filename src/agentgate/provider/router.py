"""AgentRouter -- agent profile 注册表

管理 偏好 provider / profile 名称 -> agent profile -> 有序候选链 的映射。
profile 是静态配置数据：启动时加载（内置或 JSON 文件），运行期间不变。
"""

import json
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, field_validator

from .models import CandidateChain, ChainCandidate

log = structlog.get_logger()

DEFAULT_PROFILE = "fast-local"


class AgentProfile(BaseModel):
    """单个 agent profile 的配置

    candidates 按 priority 升序排列，加载后即为调用顺序。
    """

    name: str = Field(description="profile 名称（如 fast-local, cloud-first）")
    agent_id: str = Field(description="写入用量表的 agent 标识")
    description: str = Field(default="", description="profile 用途描述")
    aliases: list[str] = Field(
        default_factory=list,
        description="映射到此 profile 的偏好 provider 名称",
    )
    candidates: list[ChainCandidate] = Field(min_length=1, description="候选列表")

    @field_validator("candidates")
    @classmethod
    def _sort_by_priority(cls, value: list[ChainCandidate]) -> list[ChainCandidate]:
        return sorted(value, key=lambda c: c.priority)


def _get_default_profiles() -> list[AgentProfile]:
    """获取内置 agent profile 配置"""
    return [
        AgentProfile(
            name="fast-local",
            agent_id="fast-chat-agent",
            description="本地模型优先，云端兜底",
            aliases=["openai", "ollama", "local"],
            candidates=[
                ChainCandidate(provider="ollama", model="glm4:9b", priority=1),
                ChainCandidate(provider="ollama", model="mistral", priority=2),
                ChainCandidate(provider="google", model="gemini-2.0-flash", priority=3),
            ],
        ),
        AgentProfile(
            name="cloud-first",
            agent_id="gemini-agent",
            description="Gemini 优先，Claude 与本地模型兜底",
            aliases=["google", "gemini"],
            candidates=[
                ChainCandidate(provider="google", model="gemini-2.0-flash", priority=1),
                ChainCandidate(
                    provider="anthropic", model="claude-sonnet-4-5-20250929", priority=2
                ),
                ChainCandidate(provider="ollama", model="glm4:9b", priority=3),
            ],
        ),
        AgentProfile(
            name="reasoning-first",
            agent_id="claude-agent",
            description="Claude 优先，适合高推理强度请求",
            aliases=["anthropic", "claude"],
            candidates=[
                ChainCandidate(
                    provider="anthropic", model="claude-sonnet-4-5-20250929", priority=1
                ),
                ChainCandidate(provider="google", model="gemini-2.0-flash", priority=2),
                ChainCandidate(provider="ollama", model="mistral", priority=3),
            ],
        ),
    ]


def load_agent_profiles(path: str | Path) -> list[AgentProfile]:
    """从 JSON 文件加载 agent profile 列表

    Raises:
        OSError: 文件不可读
        json.JSONDecodeError: 非法 JSON
        pydantic.ValidationError: profile 结构不合法（如候选为空）
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    profiles = [AgentProfile.model_validate(item) for item in raw]
    log.info("agent_profiles_loaded", path=str(path), count=len(profiles))
    return profiles


class AgentRouter:
    """Agent 路由 -- 把偏好 provider 解析为有序候选链

    不做动态发现；同样的输入总是得到同样的候选链。
    """

    def __init__(
        self,
        profiles: list[AgentProfile] | None = None,
        default_profile: str | None = None,
    ) -> None:
        """初始化路由

        Args:
            profiles: profile 配置列表，None 时使用内置配置
            default_profile: 未知偏好时使用的 profile 名称；None 时优先 fast-local，
                不存在则取第一个 profile

        Raises:
            ValueError: profile 列表为空，或显式指定的默认 profile 不在配置中
        """
        profile_list = profiles if profiles is not None else _get_default_profiles()
        if not profile_list:
            raise ValueError("至少需要一个 agent profile")

        # 按 name 建立索引，去重
        self._profiles: dict[str, AgentProfile] = {}
        for profile in profile_list:
            self._profiles[profile.name] = profile
        # 小写名称 -> name，名称匹配不区分大小写
        self._names: dict[str, str] = {name.lower(): name for name in self._profiles}

        if default_profile is None:
            default_profile = (
                DEFAULT_PROFILE if DEFAULT_PROFILE in self._profiles else profile_list[0].name
            )
        elif default_profile not in self._profiles:
            raise ValueError(f"默认 profile 未配置: {default_profile}")
        self._default_profile = default_profile

        # alias -> profile name（先注册者优先）
        self._aliases: dict[str, str] = {}
        for profile in self._profiles.values():
            for alias in profile.aliases:
                self._aliases.setdefault(alias.lower(), profile.name)

    @property
    def default_profile(self) -> str:
        return self._default_profile

    def resolve(self, preferred_provider: str | None) -> CandidateChain:
        """将偏好 provider 解析为候选链

        行为规则:
            1. None / 空字符串 -> 默认 profile
            2. 与 profile 名称一致（不区分大小写）-> 该 profile
            3. 与某 profile 的 alias 一致（不区分大小写）-> 该 profile
            4. 都不匹配 -> 默认 profile，并记录 warning 日志
        """
        profile = self._profiles[self.resolve_profile_name(preferred_provider)]
        return CandidateChain(
            agent_id=profile.agent_id,
            profile=profile.name,
            candidates=tuple(profile.candidates),
        )

    def resolve_profile_name(self, preferred_provider: str | None) -> str:
        """只解析 profile 名称"""
        if not preferred_provider:
            return self._default_profile

        key = preferred_provider.lower()
        if key in self._names:
            return self._names[key]

        if key in self._aliases:
            return self._aliases[key]

        log.warning(
            "agent_profile_unknown",
            preferred_provider=preferred_provider,
            default_profile=self._default_profile,
        )
        return self._default_profile

    def list_all(self) -> list[AgentProfile]:
        """列出所有 profile（按 name 排序）"""
        return sorted(self._profiles.values(), key=lambda p: p.name)

    def all_candidates(self) -> list[ChainCandidate]:
        """所有 profile 中出现过的 (provider, model)，去重并保持首次出现顺序"""
        seen: set[tuple[str, str]] = set()
        result: list[ChainCandidate] = []
        for profile in self._profiles.values():
            for candidate in profile.candidates:
                key = (candidate.provider, candidate.model)
                if key not in seen:
                    seen.add(key)
                    result.append(candidate)
        return result
