"""文本生成路由

POST /api/integrations/ai/generate-text: 按降级链生成文本。
- 正常返回 200
- 全部 provider 失败时返回 503，响应体仍携带静态降级文本
- 请求校验失败返回 422
"""

from agentgate.provider import FallbackOrchestrator, InvalidRequestError
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from starlette.responses import JSONResponse

from ..deps import get_caller_id, get_orchestrator

router = APIRouter()


class GenerateTextRequest(BaseModel):
    """文本生成请求体（字段在编排器中校验）"""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(description="用户输入")
    enable_web_search: bool = Field(default=False, alias="enableWebSearch")
    enable_deep_research: bool = Field(default=False, alias="enableDeepResearch")
    reasoning_effort: str = Field(default="low", alias="reasoningEffort")
    model_provider: str | None = Field(
        default=None,
        alias="modelProvider",
        description="偏好 provider 或 profile 名称",
    )


class GenerateTextResponse(BaseModel):
    """文本生成响应"""

    model_config = ConfigDict(populate_by_name=True)

    text: str
    fallback_used: bool = Field(alias="fallbackUsed")
    provider: str


@router.post("/api/integrations/ai/generate-text", response_model=GenerateTextResponse)
async def generate_text(
    body: GenerateTextRequest,
    caller_id: str = Depends(get_caller_id),
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
):
    """生成文本；provider 全部失败时以 503 返回静态降级回答"""
    try:
        outcome = await orchestrator.generate(
            {
                "prompt": body.prompt,
                "webSearch": body.enable_web_search,
                "deepResearch": body.enable_deep_research,
                "reasoningEffort": body.reasoning_effort,
                "preferredProvider": body.model_provider,
                "callerId": caller_id,
            }
        )
    except InvalidRequestError as e:
        return JSONResponse(
            status_code=422,
            content={"detail": str(e), "errors": e.errors},
        )

    response = GenerateTextResponse(
        text=outcome.text,
        fallback_used=outcome.fallback_used,
        provider=outcome.provider_used,
    )
    return JSONResponse(
        status_code=503 if outcome.is_static_fallback else 200,
        content=response.model_dump(by_alias=True),
    )
