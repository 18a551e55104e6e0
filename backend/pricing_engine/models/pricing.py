from decimal import Decimal
from typing import Optional
from .base import FrozenModel


class PricingResult(FrozenModel):
    """Итоговая цена товара для витрины и корзины"""
    original_price: Decimal  # Зачёркнутая цена, всегда base_price
    display_price: Decimal
    has_discount: bool
    discount_percentage: int
    extra_promotional_discount: Decimal = Decimal("0")


class TimeRemaining(FrozenModel):
    days: int
    hours: int
    minutes: int


class SpecialPricingResult(FrozenModel):
    """Итог спеццены для товаров акции с минимумом штук"""
    new_total: Decimal
    discount: Decimal
    per_item_price: Optional[Decimal] = None
