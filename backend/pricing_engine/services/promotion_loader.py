"""
Граница между слоем данных и движком.

Сырые акции (dict из API/БД) один раз проверяются и превращаются в
закрытый набор моделей Promotion. Дальше движок работает только с
валидными значениями.
"""
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Union
from pydantic import TypeAdapter, ValidationError
from pricing_engine.core.exceptions import MalformedPromotionError
from pricing_engine.core.logging import get_logger
from pricing_engine.models.promotion import Promotion, PromotionKind, DiscountType, SpecialPricingType
from pricing_engine.schemas.promotion import PromotionPayload
from pricing_engine.services.money import ZERO, clamp_percentage

logger = get_logger(__name__)

_promotion_adapter = TypeAdapter(Promotion)

RawPromotion = Union[Mapping[str, Any], PromotionPayload]

# Типы из старого поля rules
MIN_QUANTITY_RULE = "minimum_quantity_same_promotion"
MIN_ORDER_VALUE_RULE = "minimum_order_value"
DEFAULT_MINIMUM_QUANTITY = 2


def _raw_id(payload: RawPromotion) -> Optional[int]:
    if isinstance(payload, PromotionPayload):
        return payload.id
    value = payload.get("id") if isinstance(payload, Mapping) else None
    return value if isinstance(value, int) else None


def _positive(value: Optional[Decimal]) -> Optional[Decimal]:
    """0 и меньше = ограничения нет"""
    if value is None or not value.is_finite() or value <= 0:
        return None
    return value


def _minimum_order_value(payload: PromotionPayload) -> Optional[Decimal]:
    if payload.minimum_order_value is not None:
        return payload.minimum_order_value
    rules = payload.rules
    if rules is not None and rules.type == MIN_ORDER_VALUE_RULE:
        return rules.minimum_value
    return None


def _minimum_quantity(payload: PromotionPayload) -> Optional[int]:
    quantity = payload.minimum_quantity
    rules = payload.rules
    if quantity is None and rules is not None and rules.type == MIN_QUANTITY_RULE:
        quantity = rules.minimum_quantity or DEFAULT_MINIMUM_QUANTITY
    if quantity is None or quantity <= 0:
        return None
    return quantity


def _special_pricing(payload: PromotionPayload) -> Optional[dict]:
    special = payload.special_pricing
    if special is None and payload.rules is not None:
        special = payload.rules.special_pricing
    if special is None:
        return None

    value = special.value
    if special.type == SpecialPricingType.EXTRA_DISCOUNT:
        value = clamp_percentage(value)
    return {"type": special.type, "value": value}


def infer_kind(payload: PromotionPayload) -> PromotionKind:
    """
    Определить вид акции, если он не пришёл явно:
    1. Есть минимальная сумма заказа: пороговая скидка
    2. У какого-либо товара есть цена по акции: фиксированная цена
    3. Иначе процентная скидка
    """
    if _positive(_minimum_order_value(payload)) is not None:
        return PromotionKind.THRESHOLD_DISCOUNT
    if any(p.promotional_price is not None for p in payload.products or []):
        return PromotionKind.FIXED_PRICE_OVERRIDE
    return PromotionKind.PERCENTAGE_OFF


def parse_promotion(payload: RawPromotion) -> Promotion:
    """Проверить одну акцию. MalformedPromotionError если данные не собрать"""
    promotion_id = _raw_id(payload)

    try:
        data = payload if isinstance(payload, PromotionPayload) else PromotionPayload.model_validate(payload)
    except ValidationError as exc:
        raise MalformedPromotionError(
            f"Invalid promotion payload ({exc.error_count()} errors)", promotion_id
        ) from exc

    kind = data.kind or infer_kind(data)
    discount_type = data.discount_type or DiscountType.PERCENTAGE
    discount_value = data.discount_value if data.discount_value is not None else ZERO
    if discount_type == DiscountType.PERCENTAGE:
        # Проценты вне 0..100 приводим к ближайшей границе
        discount_value = clamp_percentage(discount_value)

    products = {}
    for item in data.products or []:
        pct = item.additional_discount_percentage
        if pct is None and discount_type == DiscountType.PERCENTAGE:
            pct = item.discount_override
            if pct is None and kind == PromotionKind.PERCENTAGE_OFF:
                pct = discount_value

        products[item.product_id] = {
            "promotion_name": data.promotion_name,
            "promotional_price": item.promotional_price,
            "additional_discount_percentage": clamp_percentage(pct),
            "promotion_end_date": data.end_date,
        }

    try:
        return _promotion_adapter.validate_python({
            "kind": kind.value,
            "id": data.id,
            "promotion_name": data.promotion_name,
            "is_active": True if data.is_active is None else data.is_active,
            "start_date": data.start_date,
            "end_date": data.end_date,
            "discount_value": discount_value,
            "discount_type": discount_type,
            "minimum_order_value": _positive(_minimum_order_value(data)),
            "minimum_quantity": _minimum_quantity(data),
            "special_pricing": _special_pricing(data),
            "products": products,
            "priority": data.priority or 0,
            "is_mandatory": bool(data.is_mandatory),
        })
    except ValidationError as exc:
        raise MalformedPromotionError(
            f"Promotion {data.id} does not form a valid {kind.value} promotion ({exc.error_count()} errors)",
            data.id,
        ) from exc


def parse_promotions(payloads: Iterable[RawPromotion]) -> List[Promotion]:
    """Проверить список акций; битые пропускаются с предупреждением"""
    promotions = []
    for payload in payloads:
        try:
            promotions.append(parse_promotion(payload))
        except MalformedPromotionError as exc:
            logger.warning("Skipping malformed promotion {}: {}", exc.promotion_id, exc)
    return promotions
