"""价格表 Domain Model"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class PricingEntry(BaseModel):
    """单个 (provider, model) 的每千 token 价格（USD）"""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(description="provider 标识")
    model: str = Field(description="模型名称，精确匹配")
    input_cost_per_1k: Decimal = Field(ge=0, description="每 1000 输入 token 价格")
    output_cost_per_1k: Decimal = Field(ge=0, description="每 1000 输出 token 价格")

    @property
    def key(self) -> tuple[str, str]:
        return (self.provider, self.model)
