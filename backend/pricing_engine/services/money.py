from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Optional, Union
from pricing_engine.core.config import settings

ZERO = Decimal("0")
HUNDRED = Decimal("100")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """
    Привести число к Decimal.
    None, NaN и бесконечности -> None (значение считается отсутствующим).
    Нечисловые типы — ошибка программиста, падаем сразу.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary value")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        # Через str, чтобы 0.1 осталось 0.1
        result = Decimal(str(value))
    elif isinstance(value, str):
        result = Decimal(value.strip())
    else:
        raise TypeError(f"Unsupported numeric type: {type(value).__name__}")

    if not result.is_finite():
        return None
    return result


def clamp_percentage(value: Optional[Number]) -> Decimal:
    pct = to_decimal(value)
    if pct is None or pct < 0:
        return ZERO
    return min(pct, HUNDRED)


def _wide_context(value: Decimal, places: int) -> Context:
    # Точности по умолчанию (28 знаков) не хватает для очень больших сумм
    digits = max(value.adjusted(), 0) + places + 2
    return Context(prec=max(digits, 28))


def quantize_money(amount: Decimal) -> Decimal:
    places = settings.PRICE_DECIMAL_PLACES
    return amount.quantize(settings.money_quantum, rounding=ROUND_HALF_UP, context=_wide_context(amount, places))


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP, context=_wide_context(value, 0)))


def format_money(amount: Decimal, currency: Optional[str] = None) -> str:
    """R45.00"""
    symbol = settings.CURRENCY_SYMBOL if currency is None else currency
    return f"{symbol}{quantize_money(amount):.{settings.PRICE_DECIMAL_PLACES}f}"
