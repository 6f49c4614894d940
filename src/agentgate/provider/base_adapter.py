"""ProviderAdapter -- provider 适配器基类

把规范化的 GenerationRequest 翻译为 provider 的 HTTP 调用，再把响应翻译回 ProviderResult。
所有失败统一包装为 ProviderError 并向上抛出；用量记账由 FallbackOrchestrator 负责。
"""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from .exceptions import ProviderError, ProviderResponseError, ProviderTimeoutError
from .models import GenerationRequest, ProviderResult

log = structlog.get_logger()

# 健康检查超时（硬编码，应快速响应）
HEALTH_CHECK_TIMEOUT_S = 5

# 响应体解析时视为“格式不符”的异常类型
_MALFORMED_ERROR_TYPES = (KeyError, IndexError, TypeError, AttributeError, ValueError)


class ProviderAdapter(ABC):
    """provider 适配器基类

    子类只负责: 构建请求体（含 flag 映射）、解析响应与 token 用量、识别安全拦截。
    """

    # provider 标识（与降级链、价格表中的 provider 字段一致）
    provider: str = ""
    # 错误信息中使用的展示名
    display_name: str = ""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_s: float = 30,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """初始化适配器

        Args:
            base_url: provider API 基础 URL
            api_key: provider API key（无鉴权的 provider 可为空）
            timeout_s: 单次请求超时（秒）
            http_client: 共享的 httpx 客户端，None 时每次调用临时创建
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_s = timeout_s
        self._http_client = http_client

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    @abstractmethod
    def build_request(
        self, request: GenerationRequest, model: str
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        """构建 provider 请求

        Returns:
            (url, headers, json_body) 元组
        """
        ...

    @abstractmethod
    def parse_response(self, data: dict[str, Any], model: str) -> ProviderResult:
        """解析 provider 响应体

        Raises:
            SafetyRejectionError: provider 报告内容安全拦截
            KeyError/IndexError/TypeError: 响应结构不符（由 invoke 包装为 ProviderResponseError）
        """
        ...

    def health_request(self) -> tuple[str, dict[str, str]]:
        """健康检查请求 (url, headers)，默认探测基础 URL"""
        return self._base_url, {}

    async def invoke(self, request: GenerationRequest, model: str) -> ProviderResult:
        """调用 provider 生成文本

        Args:
            request: 生成请求
            model: 本次使用的模型名称

        Returns:
            ProviderResult

        Raises:
            ProviderTimeoutError: 请求超时
            ProviderError: 网络错误或非 2xx 响应
            ProviderResponseError: 响应体无法解析
            SafetyRejectionError: 内容安全拦截
        """
        start_time = time.monotonic()
        url, headers, body = self.build_request(request, model)

        log.debug(
            "provider_call_start",
            provider=self.provider,
            model=model,
            prompt_length=len(request.prompt),
        )

        response = await self._post(url, headers, body)

        if not response.is_success:
            raise ProviderError(
                f"{self.display_name} API error: {response.status_code} {response.reason_phrase}",
                provider=self.provider,
                http_status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderResponseError(
                f"{self.display_name} 响应不是合法 JSON: {e}",
                provider=self.provider,
                http_status=response.status_code,
                cause=e,
            ) from e

        try:
            result = self.parse_response(data, model)
        except ProviderError:
            raise
        except _MALFORMED_ERROR_TYPES as e:
            raise ProviderResponseError(
                f"{self.display_name} 响应结构不符: {type(e).__name__}: {e}",
                provider=self.provider,
                http_status=response.status_code,
                cause=e,
            ) from e

        log.info(
            "provider_call_completed",
            provider=self.provider,
            model=model,
            duration_ms=int((time.monotonic() - start_time) * 1000),
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
        )
        return result

    async def _post(
        self, url: str, headers: dict[str, str], body: dict[str, Any]
    ) -> httpx.Response:
        """发送 POST 请求，网络类异常统一包装为 ProviderError"""
        try:
            if self._http_client is not None:
                return await self._http_client.post(
                    url, headers=headers, json=body, timeout=self._timeout_s
                )
            async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                return await client.post(url, headers=headers, json=body)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(self.provider, self._timeout_s, cause=e) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                f"{self.display_name} 网络错误: {type(e).__name__}: {e}",
                provider=self.provider,
                cause=e,
            ) from e

    async def health_check(self) -> bool:
        """检查 provider 可达性

        Returns:
            True 如果返回 2xx，False 如果不可达或异常

        注意: 此方法不抛出异常，所有异常内部捕获并返回 False。
        """
        url, headers = self.health_request()
        try:
            if self._http_client is not None:
                resp = await self._http_client.get(
                    url, headers=headers, timeout=HEALTH_CHECK_TIMEOUT_S
                )
            else:
                async with httpx.AsyncClient() as http_client:
                    resp = await http_client.get(
                        url, headers=headers, timeout=HEALTH_CHECK_TIMEOUT_S
                    )
            return resp.is_success
        except Exception as e:
            log.debug("health_check_failed", provider=self.provider, url=url, error=str(e))
            return False
