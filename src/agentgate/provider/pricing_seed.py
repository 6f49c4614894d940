"""价格表种子数据 -- 来自 litellm 的 model_cost 映射

只在价格表为空时写入，之后以持久层中的价格为准。
litellm 以每 token 计价，这里换算为每 1000 token。
"""

from decimal import Decimal

import structlog
from agentgate.core.models import PricingEntry
from agentgate.core.store import PricingStore
from litellm import model_cost

from .models import ChainCandidate

log = structlog.get_logger()

# provider 标识 -> litellm model_cost 中的 key 前缀
LITELLM_PREFIXES: dict[str, str] = {
    "google": "gemini",
    "anthropic": "anthropic",
    "ollama": "ollama",
}


def _lookup_model_cost(provider: str, model: str) -> dict | None:
    prefix = LITELLM_PREFIXES.get(provider, provider)
    for key in (model, f"{prefix}/{model}"):
        info = model_cost.get(key)
        if isinstance(info, dict):
            return info
    return None


def pricing_entries_from_litellm(candidates: list[ChainCandidate]) -> list[PricingEntry]:
    """把候选 (provider, model) 映射为价格条目，litellm 中没有的模型跳过"""
    entries: list[PricingEntry] = []
    seen: set[tuple[str, str]] = set()
    for candidate in candidates:
        key = (candidate.provider, candidate.model)
        if key in seen:
            continue
        seen.add(key)

        info = _lookup_model_cost(candidate.provider, candidate.model)
        if info is None:
            log.debug("pricing_seed_model_missing", provider=key[0], model=key[1])
            continue

        per_token_in = Decimal(str(info.get("input_cost_per_token") or 0))
        per_token_out = Decimal(str(info.get("output_cost_per_token") or 0))
        entries.append(
            PricingEntry(
                provider=candidate.provider,
                model=candidate.model,
                input_cost_per_1k=per_token_in * 1000,
                output_cost_per_1k=per_token_out * 1000,
            )
        )
    return entries


async def seed_pricing_if_empty(
    pricing_store: PricingStore,
    candidates: list[ChainCandidate],
) -> int:
    """价格表为空时写入 litellm 种子价格

    Returns:
        写入的条目数（表非空时为 0）
    """
    existing = await pricing_store.list_pricing()
    if existing:
        return 0

    entries = pricing_entries_from_litellm(candidates)
    for entry in entries:
        await pricing_store.upsert_pricing(entry)

    log.info("pricing_seeded", count=len(entries))
    return len(entries)
