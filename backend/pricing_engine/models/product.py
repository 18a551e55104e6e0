from typing import Optional
from decimal import Decimal
from .base import FrozenModel


class ProductPriceFacts(FrozenModel):
    """Ценовые данные товара из каталога"""
    product_id: int
    base_price: Decimal
    sale_price: Optional[Decimal] = None
