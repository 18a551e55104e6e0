from typing import Optional, Dict, Literal, Union, Annotated
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pydantic import Field, model_validator
from .base import FrozenModel


class PromotionKind(str, Enum):
    PERCENTAGE_OFF = "percentage_off"
    FIXED_PRICE_OVERRIDE = "fixed_price_override"
    THRESHOLD_DISCOUNT = "threshold_discount"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class SpecialPricingType(str, Enum):
    FIXED_TOTAL = "fixed_total"  # Фикс. сумма за все товары акции
    EXTRA_DISCOUNT = "extra_discount"  # Доп. процент на сумму товаров акции
    FIXED_PER_ITEM = "fixed_per_item"  # Фикс. цена за штуку


class SpecialPricing(FrozenModel):
    """Спеццена, которая открывается после набора minimum_quantity"""
    type: SpecialPricingType
    value: Decimal = Field(ge=0)


class PromotionProductInfo(FrozenModel):
    """Условия акции для конкретного товара"""
    promotion_name: str
    promotional_price: Optional[Decimal] = None
    # Доп. процент поверх уже действующей цены, 0 = без доп. скидки
    additional_discount_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    promotion_end_date: Optional[datetime] = None


class PromotionBase(FrozenModel):
    id: int
    promotion_name: str
    is_active: bool = True

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    # Значение скидки (процент или фикс. сумма)
    discount_value: Decimal = Field(default=Decimal("0"), ge=0)
    discount_type: DiscountType = DiscountType.PERCENTAGE
    minimum_order_value: Optional[Decimal] = Field(default=None, ge=0)
    # Минимум штук из акции в корзине
    minimum_quantity: Optional[int] = Field(default=None, gt=0)
    special_pricing: Optional[SpecialPricing] = None

    # Пустой словарь = акция на всю корзину
    products: Dict[int, PromotionProductInfo] = Field(default_factory=dict)

    priority: int = 0  # Выше = важнее
    is_mandatory: bool = False

    @property
    def is_restricted(self) -> bool:
        return bool(self.products)

    def covers(self, product_id: int) -> bool:
        return not self.products or product_id in self.products


class PercentageOffPromotion(PromotionBase):
    kind: Literal["percentage_off"] = "percentage_off"

    @model_validator(mode="after")
    def check_percentage_range(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        return self


class FixedPriceOverridePromotion(PromotionBase):
    kind: Literal["fixed_price_override"] = "fixed_price_override"


class ThresholdDiscountPromotion(PromotionBase):
    kind: Literal["threshold_discount"] = "threshold_discount"
    minimum_order_value: Decimal = Field(gt=0)


Promotion = Annotated[
    Union[PercentageOffPromotion, FixedPriceOverridePromotion, ThresholdDiscountPromotion],
    Field(discriminator="kind"),
]
