from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from pricing_engine.models.promotion import PromotionKind, DiscountType, SpecialPricingType


class PayloadModel(BaseModel):
    """Сырые данные из слоя доступа к данным: camelCase или snake_case"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class PromotionProductPayload(PayloadModel):
    product_id: int
    promotional_price: Optional[Decimal] = None
    # Старое поле: процент для конкретного товара вместо общего discountValue
    discount_override: Optional[Decimal] = None
    additional_discount_percentage: Optional[Decimal] = None


class SpecialPricingPayload(PayloadModel):
    type: SpecialPricingType
    value: Decimal


class PromotionRulePayload(PayloadModel):
    """Старый формат правил: {"type": "minimum_quantity_same_promotion", ...}"""
    type: Optional[str] = None
    minimum_quantity: Optional[int] = None
    minimum_value: Optional[Decimal] = None
    special_pricing: Optional[SpecialPricingPayload] = None


class PromotionPayload(PayloadModel):
    id: int
    promotion_name: str
    description: Optional[str] = None

    # Если не указан — определяется по остальным полям
    kind: Optional[PromotionKind] = None
    is_active: Optional[bool] = None

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    discount_value: Optional[Decimal] = None
    discount_type: Optional[DiscountType] = None
    minimum_order_value: Optional[Decimal] = None
    minimum_quantity: Optional[int] = None
    special_pricing: Optional[SpecialPricingPayload] = None
    rules: Optional[PromotionRulePayload] = None

    products: Optional[List[PromotionProductPayload]] = None

    priority: Optional[int] = None
    is_mandatory: Optional[bool] = None
