"""FallbackOrchestrator -- 降级链编排

按候选链顺序逐个调用 provider，首个成功者胜出；
全部失败时返回静态降级回答。每次尝试写入一条用量记录。
候选之间严格串行，不重排、不重试、不并发。
"""

import asyncio
import time
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

import structlog
from agentgate.core.config import USAGE_ERROR_MESSAGE_MAX_LENGTH
from agentgate.core.models import STATIC_MODEL, STATIC_PROVIDER, UsageRecord, UsageStatus
from pydantic import ValidationError

from .base_adapter import ProviderAdapter
from .cost import CostCalculator
from .exceptions import (
    InvalidRequestError,
    ProviderError,
    ProviderTimeoutError,
    UnsupportedProviderError,
)
from .models import ChainCandidate, GenerationOutcome, GenerationRequest, ProviderResult
from .router import AgentRouter
from .static_fallback import StaticFallbackResponder
from .usage import UsageRecorder

log = structlog.get_logger()

_ZERO = Decimal("0")


def _clip(message: str | None) -> str | None:
    if message is None:
        return None
    return message[:USAGE_ERROR_MESSAGE_MAX_LENGTH]


class FallbackOrchestrator:
    """降级链编排器

    降级链: AgentRouter.resolve() 的候选（按顺序）-> StaticFallbackResponder
    """

    def __init__(
        self,
        router: AgentRouter,
        adapters: Mapping[str, ProviderAdapter],
        cost_calculator: CostCalculator,
        usage_recorder: UsageRecorder,
        static_responder: StaticFallbackResponder | None = None,
        timeout_s: float = 30,
    ) -> None:
        """初始化编排器

        Args:
            router: agent 路由
            adapters: provider 标识 -> 适配器
            cost_calculator: 成本计算器
            usage_recorder: 用量记录器
            static_responder: 静态降级渲染器，None 时使用默认规则
            timeout_s: 单个候选的调用超时（秒）
        """
        self._router = router
        self._adapters = dict(adapters)
        self._cost = cost_calculator
        self._usage = usage_recorder
        self._static = static_responder or StaticFallbackResponder()
        self._timeout_s = timeout_s

    async def generate(self, request: GenerationRequest | Mapping[str, Any]) -> GenerationOutcome:
        """执行一次文本生成

        Args:
            request: GenerationRequest，或尚未校验的原始 dict

        Returns:
            GenerationOutcome（provider 全部失败时为静态降级结果）

        Raises:
            InvalidRequestError: 请求校验失败，未尝试任何 provider
            asyncio.CancelledError: 调用方取消（在途尝试已记为 cancelled）
        """
        req = self._validate(request)
        chain = self._router.resolve(req.preferred_provider)

        last_error: ProviderError | None = None
        for index, candidate in enumerate(chain.candidates):
            start = time.monotonic()
            log.info(
                "provider_attempt_started",
                agent_id=chain.agent_id,
                provider=candidate.provider,
                model=candidate.model,
                attempt=index + 1,
                chain_length=len(chain.candidates),
            )
            try:
                result = await self._invoke(req, candidate)
            except asyncio.CancelledError:
                self._record_cancelled(req, chain.agent_id, candidate, start)
                raise
            except ProviderError as e:
                latency_ms = self._elapsed_ms(start)
                last_error = e
                self._usage.record(
                    self._build_record(
                        req,
                        chain.agent_id,
                        candidate.provider,
                        candidate.model,
                        status=UsageStatus.FAILED,
                        latency_ms=latency_ms,
                        error_message=e.message,
                    )
                )
                log.warning(
                    "provider_attempt_failed",
                    agent_id=chain.agent_id,
                    provider=candidate.provider,
                    model=candidate.model,
                    attempt=index + 1,
                    latency_ms=latency_ms,
                    http_status=e.http_status,
                    recoverable=e.recoverable,
                    error=e.message,
                    error_type=type(e).__name__,
                )
                continue

            latency_ms = self._elapsed_ms(start)
            try:
                await self._cost.ensure_loaded()
            except asyncio.CancelledError:
                # provider 已返回，token 已消耗，取消时仍按已知用量入账
                self._record_cancelled(req, chain.agent_id, candidate, start, result)
                raise
            cost = self._cost.cost(
                candidate.provider,
                candidate.model,
                result.input_tokens,
                result.output_tokens,
            )
            self._usage.record(
                self._build_record(
                    req,
                    chain.agent_id,
                    candidate.provider,
                    candidate.model,
                    status=UsageStatus.SUCCESS,
                    latency_ms=latency_ms,
                    input_tokens=result.input_tokens,
                    output_tokens=result.output_tokens,
                    cost_usd=cost,
                )
            )
            log.info(
                "provider_attempt_succeeded",
                agent_id=chain.agent_id,
                provider=candidate.provider,
                model=candidate.model,
                attempt=index + 1,
                latency_ms=latency_ms,
                input_tokens=result.input_tokens,
                output_tokens=result.output_tokens,
                cost_usd=str(cost),
            )
            return GenerationOutcome(
                text=result.text,
                fallback_used=index > 0,
                provider_used=result.provider_used or candidate.provider,
                model_used=result.model or candidate.model,
                agent_id=chain.agent_id,
            )

        # 降级链耗尽
        text = self._static.render(req.prompt, chain.agent_id, last_error)
        error_message = last_error.message if last_error is not None else None
        self._usage.record(
            self._build_record(
                req,
                chain.agent_id,
                STATIC_PROVIDER,
                STATIC_MODEL,
                status=UsageStatus.FAILED,
                latency_ms=0,
                error_message=error_message,
            )
        )
        log.error(
            "chain_exhausted_static_fallback",
            agent_id=chain.agent_id,
            profile=chain.profile,
            attempts=len(chain.candidates),
            last_error=error_message,
        )
        return GenerationOutcome(
            text=text,
            fallback_used=True,
            provider_used=STATIC_MODEL,
            model_used=STATIC_MODEL,
            agent_id=chain.agent_id,
        )

    @staticmethod
    def _validate(request: GenerationRequest | Mapping[str, Any]) -> GenerationRequest:
        if isinstance(request, GenerationRequest):
            return request
        try:
            return GenerationRequest.model_validate(request)
        except ValidationError as e:
            errors = [
                {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ]
            raise InvalidRequestError("invalid generation request", errors=errors) from e

    async def _invoke(self, request: GenerationRequest, candidate: ChainCandidate) -> ProviderResult:
        """调用单个候选，所有失败统一为 ProviderError"""
        adapter = self._adapters.get(candidate.provider)
        if adapter is None:
            raise UnsupportedProviderError(candidate.provider)

        try:
            return await asyncio.wait_for(
                adapter.invoke(request, candidate.model),
                timeout=self._timeout_s,
            )
        except TimeoutError as e:
            raise ProviderTimeoutError(candidate.provider, self._timeout_s, cause=e) from e
        except ProviderError:
            raise
        except Exception as e:
            # 适配器的意外异常同样推进降级链
            raise ProviderError(
                f"{type(e).__name__}: {e}",
                provider=candidate.provider,
                cause=e,
            ) from e

    def _record_cancelled(
        self,
        request: GenerationRequest,
        agent_id: str,
        candidate: ChainCandidate,
        start: float,
        result: ProviderResult | None = None,
    ) -> None:
        """在途尝试被取消：写入 cancelled 记录（已拿到结果时带上 token 与成本）"""
        latency_ms = self._elapsed_ms(start)
        input_tokens = result.input_tokens if result is not None else 0
        output_tokens = result.output_tokens if result is not None else 0
        cost = (
            self._cost.cost(candidate.provider, candidate.model, input_tokens, output_tokens)
            if result is not None
            else _ZERO
        )
        self._usage.record(
            self._build_record(
                request,
                agent_id,
                candidate.provider,
                candidate.model,
                status=UsageStatus.CANCELLED,
                latency_ms=latency_ms,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                cost_usd=cost,
                error_message="request cancelled",
            )
        )
        log.warning(
            "provider_attempt_cancelled",
            agent_id=agent_id,
            provider=candidate.provider,
            model=candidate.model,
            latency_ms=latency_ms,
            completed=result is not None,
        )

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)

    @staticmethod
    def _build_record(
        request: GenerationRequest,
        agent_id: str,
        provider: str,
        model: str,
        *,
        status: UsageStatus,
        latency_ms: int,
        input_tokens: int = 0,
        output_tokens: int = 0,
        cost_usd: Decimal = _ZERO,
        error_message: str | None = None,
    ) -> UsageRecord:
        return UsageRecord(
            caller_id=request.caller_id,
            agent_id=agent_id,
            provider=provider,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=cost_usd,
            latency_ms=latency_ms,
            status=status,
            error_message=_clip(error_message),
        )
