from decimal import Decimal
from datetime import datetime
from typing import Optional, List, Sequence, Tuple
from pricing_engine.core.clock import as_utc
from pricing_engine.core.config import settings
from pricing_engine.core.logging import get_logger
from pricing_engine.models.cart import CartItemWithDiscounts
from pricing_engine.models.pricing import PricingResult, TimeRemaining
from pricing_engine.models.product import ProductPriceFacts
from pricing_engine.models.promotion import (
    Promotion,
    PromotionKind,
    DiscountType,
    PromotionProductInfo,
)
from pricing_engine.services.money import (
    ZERO,
    HUNDRED,
    Number,
    to_decimal,
    clamp_percentage,
    quantize_money,
    round_half_up,
)

logger = get_logger(__name__)


def _is_markdown(price: Optional[Decimal], base_price: Decimal) -> bool:
    """Цена реально ниже базовой (0 и отрицательные не считаются)"""
    return price is not None and ZERO < price < base_price


def resolve_price(
    base_price: Optional[Number],
    sale_price: Optional[Number] = None,
    promotion_override: Optional[PromotionProductInfo] = None,
) -> PricingResult:
    """
    Рассчитать итоговую цену товара.

    Приоритет "пола" цены:
    1. Цена по акции (promotional_price), если ниже базовой
    2. Цена распродажи (sale_price), если ниже базовой
    3. Базовая цена

    Затем доп. процент акции применяется к полу, а не к базовой цене.
    Никогда не бросает исключений на грязных данных.
    """
    base = to_decimal(base_price)
    if base is None or base <= 0:
        # Битый товар: показываем 0 без скидки
        return PricingResult(
            original_price=ZERO,
            display_price=ZERO,
            has_discount=False,
            discount_percentage=0,
        )

    promotional_price = None
    extra_pct = ZERO
    if promotion_override is not None:
        promotional_price = to_decimal(promotion_override.promotional_price)
        extra_pct = clamp_percentage(promotion_override.additional_discount_percentage)

    sale = to_decimal(sale_price)

    if _is_markdown(promotional_price, base):
        floor_price = promotional_price
    elif _is_markdown(sale, base):
        floor_price = sale
    else:
        floor_price = base

    display_price = floor_price
    if extra_pct > 0:
        display_price = max(floor_price * (1 - extra_pct / HUNDRED), ZERO)

    # Без скидки базовую цену не округляем
    if display_price < base:
        display_price = min(quantize_money(display_price), base)
    else:
        display_price = base
    has_discount = display_price < base

    # Доп. процент засчитываем, только если он реально снизил цену после округления
    extra_discount = extra_pct if display_price < quantize_money(floor_price) else ZERO

    discount_percentage = 0
    if has_discount:
        discount_percentage = max(round_half_up((base - display_price) / base * HUNDRED), 0)

    return PricingResult(
        original_price=base,
        display_price=display_price,
        has_discount=has_discount,
        discount_percentage=discount_percentage,
        extra_promotional_discount=extra_discount,
    )


def get_cart_price(
    base_price: Optional[Number],
    sale_price: Optional[Number] = None,
    promotion_override: Optional[PromotionProductInfo] = None,
) -> Decimal:
    """Цена, которая попадает в корзину"""
    return resolve_price(base_price, sale_price, promotion_override).display_price


def is_promotion_active(promotion: Promotion, now: datetime) -> bool:
    """Акция включена и now внутри [start_date, end_date]"""
    if not promotion.is_active:
        return False

    now = as_utc(now)
    if promotion.start_date is not None and as_utc(promotion.start_date) > now:
        return False
    if promotion.end_date is not None and as_utc(promotion.end_date) < now:
        return False
    return True


def is_override_current(override: PromotionProductInfo, now: datetime) -> bool:
    if override.promotion_end_date is None:
        return True
    # Конец включительно, как и у окна акции
    return as_utc(override.promotion_end_date) >= as_utc(now)


def get_promotion_time_remaining(end_date: Optional[datetime], now: datetime) -> Optional[TimeRemaining]:
    """Сколько осталось до конца акции; None если уже закончилась"""
    if end_date is None:
        return None

    left = as_utc(end_date) - as_utc(now)
    if left.total_seconds() <= 0:
        return None

    return TimeRemaining(
        days=left.days,
        hours=left.seconds // 3600,
        minutes=(left.seconds % 3600) // 60,
    )


def get_promotional_badge_text(promotion: Promotion, currency: Optional[str] = None) -> str:
    """Текст бейджа в формате "EXTRA X% OFF" """
    discount = to_decimal(promotion.discount_value) or ZERO
    if discount <= 0:
        return "SPECIAL OFFER"

    if promotion.discount_type == DiscountType.FIXED:
        symbol = settings.CURRENCY_SYMBOL if currency is None else currency
        return f"EXTRA {symbol}{round_half_up(discount)} OFF"
    return f"EXTRA {round_half_up(discount)}% OFF"


def _override_for(promotion: Promotion, product_id: int) -> Optional[PromotionProductInfo]:
    override = promotion.products.get(product_id)
    if override is not None:
        return override

    # Акция без списка товаров действует на весь каталог
    if not promotion.is_restricted and promotion.kind == PromotionKind.PERCENTAGE_OFF.value:
        return PromotionProductInfo(
            promotion_name=promotion.promotion_name,
            additional_discount_percentage=promotion.discount_value,
            promotion_end_date=promotion.end_date,
        )
    return None


def select_promotion_override(
    product: ProductPriceFacts,
    promotions: Sequence[Promotion],
    now: datetime,
) -> Optional[PromotionProductInfo]:
    """
    Выбрать единственную акцию для товара:
    1. По priority (выше = важнее)
    2. Затем максимальная выгода (минимальная итоговая цена)
    3. При равенстве — меньший id
    """
    candidates: List[Tuple[Tuple[int, Decimal, int], PromotionProductInfo]] = []

    for promo in promotions:
        if not is_promotion_active(promo, now):
            continue
        override = _override_for(promo, product.product_id)
        if override is None or not is_override_current(override, now):
            continue

        price = resolve_price(product.base_price, product.sale_price, override).display_price
        candidates.append(((-promo.priority, price, promo.id), override))

    if not candidates:
        return None

    if len(candidates) > 1:
        logger.warning(
            "Product {} matches {} active promotions, picking one by priority",
            product.product_id,
            len(candidates),
        )

    candidates.sort(key=lambda c: c[0])
    return candidates[0][1]


def price_product(
    product: ProductPriceFacts,
    promotions: Sequence[Promotion],
    now: datetime,
) -> PricingResult:
    """Цена товара с учётом действующих акций"""
    override = select_promotion_override(product, promotions, now)
    return resolve_price(product.base_price, product.sale_price, override)


def build_cart_item(
    product: ProductPriceFacts,
    quantity: int,
    promotions: Sequence[Promotion],
    now: datetime,
) -> CartItemWithDiscounts:
    pricing = price_product(product, promotions, now)
    return CartItemWithDiscounts(
        product_id=product.product_id,
        quantity=max(int(quantity), 0),
        unit_price=pricing.display_price,
    )
