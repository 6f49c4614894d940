"""Provider 包测试 fixtures"""

from collections.abc import Callable

import httpx
import pytest
from agentgate.provider.models import GenerationRequest


@pytest.fixture
def sample_request() -> GenerationRequest:
    """最小生成请求"""
    return GenerationRequest(prompt="Hello, world!")


@pytest.fixture
def mock_http() -> Callable[..., tuple[httpx.AsyncClient, list[httpx.Request]]]:
    """构造基于 httpx.MockTransport 的客户端，并记录发出的请求

    用法: client, sent = mock_http(handler)
    """

    def _factory(handler) -> tuple[httpx.AsyncClient, list[httpx.Request]]:
        sent: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
        return client, sent

    return _factory
