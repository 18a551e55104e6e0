from decimal import Decimal
from pydantic import Field, computed_field
from .base import FrozenModel


class CartItemWithDiscounts(FrozenModel):
    """Строка корзины с уже рассчитанной ценой за единицу"""
    product_id: int
    quantity: int = Field(ge=0)
    unit_price: Decimal = Field(ge=0)

    @computed_field
    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity
