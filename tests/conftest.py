from datetime import datetime, timedelta, timezone
from decimal import Decimal
import pytest
from pricing_engine.models import (
    CartItemWithDiscounts,
    PercentageOffPromotion,
    FixedPriceOverridePromotion,
    ThresholdDiscountPromotion,
    PromotionProductInfo,
    SpecialPricing,
)

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


def make_override(name="Winter Sale", promotional_price=None, pct=0, end_date=None):
    return PromotionProductInfo(
        promotion_name=name,
        promotional_price=None if promotional_price is None else Decimal(str(promotional_price)),
        additional_discount_percentage=Decimal(str(pct)),
        promotion_end_date=end_date,
    )


def _products(name, product_ids, promotional_price=None, pct=0, end_date=None):
    return {
        pid: make_override(name, promotional_price, pct, end_date)
        for pid in product_ids
    }


def make_threshold(
    promo_id=1,
    name="Spend More",
    minimum=500,
    discount=10,
    product_ids=(),
    mandatory=False,
    start=NOW - timedelta(days=7),
    end=NOW + timedelta(days=7),
    is_active=True,
):
    return ThresholdDiscountPromotion(
        id=promo_id,
        promotion_name=name,
        is_active=is_active,
        start_date=start,
        end_date=end,
        discount_value=Decimal(str(discount)),
        minimum_order_value=Decimal(str(minimum)),
        products=_products(name, product_ids, end_date=end),
        is_mandatory=mandatory,
    )


def make_percentage(
    promo_id=1,
    name="Extra Off",
    pct=15,
    product_ids=(1,),
    priority=0,
    start=NOW - timedelta(days=7),
    end=NOW + timedelta(days=7),
):
    return PercentageOffPromotion(
        id=promo_id,
        promotion_name=name,
        start_date=start,
        end_date=end,
        discount_value=Decimal(str(pct)),
        products=_products(name, product_ids, pct=pct, end_date=end),
        priority=priority,
    )


def make_fixed_price(
    promo_id=1,
    name="Flash Deal",
    price=70,
    product_ids=(1,),
    priority=0,
    start=NOW - timedelta(days=7),
    end=NOW + timedelta(days=7),
):
    return FixedPriceOverridePromotion(
        id=promo_id,
        promotion_name=name,
        start_date=start,
        end_date=end,
        products=_products(name, product_ids, promotional_price=price, end_date=end),
        priority=priority,
    )


def make_bundle(
    promo_id=1,
    name="Mix & Match",
    minimum_quantity=3,
    product_ids=(1, 2),
    special_type=None,
    special_value=0,
    mandatory=False,
    start=NOW - timedelta(days=7),
    end=NOW + timedelta(days=7),
):
    special = None
    if special_type is not None:
        special = SpecialPricing(type=special_type, value=Decimal(str(special_value)))
    return PercentageOffPromotion(
        id=promo_id,
        promotion_name=name,
        start_date=start,
        end_date=end,
        minimum_quantity=minimum_quantity,
        special_pricing=special,
        products=_products(name, product_ids, end_date=end),
        is_mandatory=mandatory,
    )


def make_item(product_id=1, quantity=1, unit_price=100):
    return CartItemWithDiscounts(
        product_id=product_id,
        quantity=quantity,
        unit_price=Decimal(str(unit_price)),
    )
