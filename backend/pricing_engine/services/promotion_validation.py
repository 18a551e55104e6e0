"""
Проверка корзины против активных акций.

Акции — это допродажи, а не условие оформления заказа: невыполненный
минимум даёт подсказку, а блокирует checkout только акция с is_mandatory.
Минимумы бывают двух видов: по сумме (minimum_order_value) и по числу
штук из акции (minimum_quantity).
"""
from decimal import Decimal
from datetime import datetime
from typing import Optional, List, Sequence, Tuple
from pricing_engine.core.clock import resolve_now
from pricing_engine.core.config import settings
from pricing_engine.core.logging import get_logger
from pricing_engine.models.cart import CartItemWithDiscounts
from pricing_engine.models.pricing import SpecialPricingResult
from pricing_engine.models.promotion import Promotion, DiscountType, SpecialPricingType
from pricing_engine.models.validation import PromotionValidationResult
from pricing_engine.services.money import ZERO, HUNDRED, format_money, quantize_money, round_half_up
from pricing_engine.services.pricing import is_promotion_active

logger = get_logger(__name__)

# Порядок сообщений: блокирующие первыми
SEVERITY_BLOCKING = 0
SEVERITY_INFO = 1

TIP_PREFIX = "💡 "


def filter_active_promotions(promotions: Sequence[Promotion], now: datetime) -> List[Promotion]:
    return [promo for promo in promotions if is_promotion_active(promo, now)]


def _eligible_items(promotion: Promotion, cart_items: Sequence[CartItemWithDiscounts]) -> List[CartItemWithDiscounts]:
    return [item for item in cart_items if promotion.covers(item.product_id)]


def eligible_total(promotion: Promotion, cart_items: Sequence[CartItemWithDiscounts]) -> Decimal:
    """Сумма строк корзины, которые засчитываются в минимум акции"""
    total = ZERO
    for item in _eligible_items(promotion, cart_items):
        total += item.line_total
    return total


def eligible_quantity(promotion: Promotion, cart_items: Sequence[CartItemWithDiscounts]) -> int:
    """Сколько штук из акции лежит в корзине"""
    return sum(item.quantity for item in _eligible_items(promotion, cart_items))


def gap_to_threshold(promotion: Promotion, cart_items: Sequence[CartItemWithDiscounts]) -> Decimal:
    """Сколько не хватает до minimum_order_value (0 если минимум выполнен)"""
    if promotion.minimum_order_value is None:
        return ZERO
    return max(promotion.minimum_order_value - eligible_total(promotion, cart_items), ZERO)


def quantity_gap(promotion: Promotion, cart_items: Sequence[CartItemWithDiscounts]) -> int:
    """Сколько штук не хватает до minimum_quantity (0 если минимум выполнен)"""
    if promotion.minimum_quantity is None:
        return 0
    return max(promotion.minimum_quantity - eligible_quantity(promotion, cart_items), 0)


def calculate_special_pricing(
    promotion: Promotion,
    cart_items: Sequence[CartItemWithDiscounts],
) -> Optional[SpecialPricingResult]:
    """
    Спеццена для товаров акции:
    - fixed_total: все товары акции за фиксированную сумму
    - extra_discount: доп. процент от суммы товаров акции
    - fixed_per_item: фиксированная цена за штуку

    None, если спеццены нет или минимум по штукам ещё не набран.
    Спеццена никогда не дороже текущей суммы.
    """
    special = promotion.special_pricing
    if special is None or quantity_gap(promotion, cart_items) > 0:
        return None

    current_total = eligible_total(promotion, cart_items)
    per_item_price = None

    if special.type == SpecialPricingType.FIXED_TOTAL:
        new_total = min(special.value, current_total)
    elif special.type == SpecialPricingType.EXTRA_DISCOUNT:
        new_total = current_total - current_total * min(special.value, HUNDRED) / HUNDRED
    else:
        per_item_price = special.value
        new_total = min(special.value * eligible_quantity(promotion, cart_items), current_total)

    new_total = quantize_money(new_total)
    return SpecialPricingResult(
        new_total=new_total,
        discount=quantize_money(current_total - new_total),
        per_item_price=per_item_price,
    )


def _offer_label(promotion: Promotion, currency: Optional[str]) -> str:
    """Метка выгоды: 10% off, R20.00 off или название акции"""
    if promotion.discount_value <= 0:
        return promotion.promotion_name
    if promotion.discount_type == DiscountType.FIXED:
        return f"{format_money(promotion.discount_value, currency)} off"
    return f"{round_half_up(promotion.discount_value)}% off"


def _unlock_text(promotion: Promotion, gap: Decimal, currency: Optional[str]) -> str:
    return (
        f"Add {format_money(gap, currency)} more of eligible items to unlock "
        f"{_offer_label(promotion, currency)} (\"{promotion.promotion_name}\")"
    )


def _items_word(count: int) -> str:
    return "item" if count == 1 else "items"


def _quantity_unlock_text(promotion: Promotion, gap: int) -> str:
    return f"Add {gap} more {_items_word(gap)} from \"{promotion.promotion_name}\" to unlock special pricing"


def _unmet_promotions(
    promotions: Sequence[Promotion],
    cart_items: Sequence[CartItemWithDiscounts],
) -> List[Tuple[Decimal, Promotion]]:
    """Акции с невыполненным минимумом суммы, от ближайшей к разблокировке"""
    unmet = []
    for promo in promotions:
        gap = gap_to_threshold(promo, cart_items)
        if gap > 0:
            unmet.append((gap, promo))
    unmet.sort(key=lambda pair: (pair[0], pair[1].id))
    return unmet


def _unmet_quantity_promotions(
    promotions: Sequence[Promotion],
    cart_items: Sequence[CartItemWithDiscounts],
) -> List[Tuple[int, Promotion]]:
    unmet = []
    for promo in promotions:
        gap = quantity_gap(promo, cart_items)
        if gap > 0:
            unmet.append((gap, promo))
    unmet.sort(key=lambda pair: (pair[0], pair[1].id))
    return unmet


def _suggestions(
    promotions: Sequence[Promotion],
    cart_items: Sequence[CartItemWithDiscounts],
    currency: Optional[str],
) -> List[str]:
    """Сначала подсказки по сумме, затем по штукам; внутри по возрастанию разрыва"""
    suggestions = [
        _unlock_text(promo, gap, currency)
        for gap, promo in _unmet_promotions(promotions, cart_items)
    ]
    suggestions.extend(
        _quantity_unlock_text(promo, gap)
        for gap, promo in _unmet_quantity_promotions(promotions, cart_items)
    )
    return suggestions


def validate_cart(
    cart_items: Sequence[CartItemWithDiscounts],
    active_promotions: Sequence[Promotion],
    now: Optional[datetime] = None,
    *,
    enabled: Optional[bool] = None,
    loading: bool = False,
    currency: Optional[str] = None,
) -> PromotionValidationResult:
    """Проверить корзину против акций и собрать сообщения и подсказки"""
    if enabled is None:
        enabled = settings.PROMOTIONS_ENABLED

    if not active_promotions or not enabled or loading:
        logger.debug("Promotion validation skipped, returning all-clear result")
        return PromotionValidationResult.all_clear()

    now = resolve_now(now)
    promotions = filter_active_promotions(active_promotions, now)

    messages: List[Tuple[int, str]] = []
    is_valid = True

    for promo in promotions:
        if promo.minimum_order_value is not None:
            total = eligible_total(promo, cart_items)
            gap = promo.minimum_order_value - total

            if gap <= 0:
                messages.append((
                    SEVERITY_INFO,
                    f"\"{promo.promotion_name}\" applied! Eligible order value: {format_money(total, currency)}",
                ))
            elif promo.is_mandatory:
                is_valid = False
                messages.append((
                    SEVERITY_BLOCKING,
                    f"\"{promo.promotion_name}\" requires a minimum eligible order of "
                    f"{format_money(promo.minimum_order_value, currency)} "
                    f"(currently {format_money(total, currency)})",
                ))

        if promo.minimum_quantity is not None:
            count = eligible_quantity(promo, cart_items)

            if count >= promo.minimum_quantity:
                messages.append((
                    SEVERITY_INFO,
                    f"\"{promo.promotion_name}\" promotion applied! {count} {_items_word(count)} in the promotion.",
                ))
            elif promo.is_mandatory:
                is_valid = False
                messages.append((
                    SEVERITY_BLOCKING,
                    f"\"{promo.promotion_name}\" requires {promo.minimum_quantity} "
                    f"{_items_word(promo.minimum_quantity)} from this promotion (currently {count})",
                ))

    # sort стабилен: внутри одной severity порядок акций сохраняется
    messages.sort(key=lambda m: m[0])

    return PromotionValidationResult(
        is_valid=is_valid,
        can_proceed_to_checkout=is_valid,
        messages=[text for _, text in messages],
        suggestions=_suggestions(promotions, cart_items, currency),
        blocking_count=sum(1 for severity, _ in messages if severity == SEVERITY_BLOCKING),
    )


def applicable_promotions(
    cart_items: Sequence[CartItemWithDiscounts],
    promotions: Sequence[Promotion],
    now: Optional[datetime] = None,
) -> List[Promotion]:
    """Активные акции, которые пересекаются с товарами корзины (минимум не важен)"""
    if not cart_items:
        return []

    now = resolve_now(now)
    product_ids = {item.product_id for item in cart_items}

    return [
        promo for promo in filter_active_promotions(promotions, now)
        if not promo.is_restricted or promo.products.keys() & product_ids
    ]


def generate_promotion_tips(
    promotions: Sequence[Promotion],
    cart_items: Sequence[CartItemWithDiscounts],
    now: Optional[datetime] = None,
    currency: Optional[str] = None,
) -> List[str]:
    """Подсказки для акций из корзины, где минимум ещё не набран"""
    relevant = applicable_promotions(cart_items, promotions, now)
    return [TIP_PREFIX + tip for tip in _suggestions(relevant, cart_items, currency)]


def get_cart_violation_message(result: PromotionValidationResult) -> str:
    """Одна строка для баннера над кнопкой оформления"""
    blocking = result.blocking_messages
    if not blocking:
        return ""
    if len(blocking) == 1:
        return blocking[0]
    return f"You have {len(blocking)} promotion requirements to meet. Check individual promotions for details."
