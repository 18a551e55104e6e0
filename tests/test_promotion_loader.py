from datetime import datetime, timezone
from decimal import Decimal
import pytest
from loguru import logger
from pricing_engine.core.exceptions import MalformedPromotionError, PricingEngineError
from pricing_engine.models import (
    ProductPriceFacts,
    SpecialPricingType,
    PercentageOffPromotion,
    FixedPriceOverridePromotion,
    ThresholdDiscountPromotion,
)
from pricing_engine.schemas import PromotionPayload
from pricing_engine.services.pricing import build_cart_item
from pricing_engine.services.promotion_loader import parse_promotion, parse_promotions, infer_kind
from pricing_engine.services.promotion_validation import validate_cart, applicable_promotions
from conftest import NOW

THRESHOLD_PAYLOAD = {
    "id": 11,
    "promotionName": "Winter Bundle",
    "description": "Spend R500 on winter items",
    "isActive": True,
    "startDate": "2024-06-01T00:00:00Z",
    "endDate": "2024-06-30T23:59:59Z",
    "discountValue": "10",
    "discountType": "percentage",
    "minimumOrderValue": "500.00",
    "products": [
        {"productId": 1, "promotionalPrice": "70.00"},
        {"productId": 2},
    ],
}


def test_threshold_payload():
    promo = parse_promotion(THRESHOLD_PAYLOAD)

    assert isinstance(promo, ThresholdDiscountPromotion)
    assert promo.minimum_order_value == Decimal("500.00")
    assert promo.end_date == datetime(2024, 6, 30, 23, 59, 59, tzinfo=timezone.utc)
    assert set(promo.products) == {1, 2}

    override = promo.products[1]
    assert override.promotion_name == "Winter Bundle"
    assert override.promotional_price == Decimal("70.00")
    assert override.additional_discount_percentage == 0
    assert override.promotion_end_date == promo.end_date


def test_percentage_payload_uses_headline_and_override():
    promo = parse_promotion({
        "id": 12,
        "promotionName": "Extra 15",
        "discountValue": 15,
        "products": [{"productId": 1}, {"productId": 2, "discountOverride": "25"}],
    })

    assert isinstance(promo, PercentageOffPromotion)
    assert promo.products[1].additional_discount_percentage == 15
    assert promo.products[2].additional_discount_percentage == 25


def test_fixed_price_payload():
    promo = parse_promotion({
        "id": 13,
        "promotionName": "Flash",
        "products": [{"productId": 3, "promotionalPrice": "49.99"}],
    })
    assert isinstance(promo, FixedPriceOverridePromotion)
    assert promo.products[3].promotional_price == Decimal("49.99")


def test_snake_case_payload():
    promo = parse_promotion({"id": 14, "promotion_name": "Snake", "minimum_order_value": "100"})
    assert isinstance(promo, ThresholdDiscountPromotion)
    assert promo.promotion_name == "Snake"


def test_explicit_kind_wins():
    promo = parse_promotion({
        "id": 15,
        "promotionName": "Percent with minimum",
        "kind": "percentage_off",
        "minimumOrderValue": 200,
        "discountValue": 5,
    })
    assert isinstance(promo, PercentageOffPromotion)
    assert promo.minimum_order_value == 200


def test_missing_fields_mean_no_constraint():
    promo = parse_promotion({
        "id": 16,
        "promotionName": "Bare",
        "isActive": None,
        "minimumOrderValue": 0,
        "products": None,
        "priority": None,
    })
    assert isinstance(promo, PercentageOffPromotion)
    assert promo.is_active is True
    assert promo.minimum_order_value is None
    assert promo.products == {}
    assert promo.priority == 0
    assert promo.is_mandatory is False
    assert promo.start_date is None and promo.end_date is None


def test_parse_accepts_payload_model():
    payload = PromotionPayload.model_validate(THRESHOLD_PAYLOAD)
    assert parse_promotion(payload) == parse_promotion(THRESHOLD_PAYLOAD)


def test_infer_kind():
    assert infer_kind(PromotionPayload(id=1, promotion_name="a", minimum_order_value=Decimal("1"))).value == "threshold_discount"
    assert infer_kind(PromotionPayload(id=1, promotion_name="a")).value == "percentage_off"


def test_out_of_range_percentages_are_clamped():
    promo = parse_promotion({
        "id": 8,
        "promotionName": "Too much",
        "discountValue": 150,
        "products": [
            {"productId": 1},
            {"productId": 2, "discountOverride": "-10"},
        ],
    })
    assert isinstance(promo, PercentageOffPromotion)
    assert promo.discount_value == 100
    assert promo.products[1].additional_discount_percentage == 100
    assert promo.products[2].additional_discount_percentage == 0


def test_one_bad_product_percentage_keeps_the_promotion():
    promotions = parse_promotions([{
        "id": 1,
        "promotionName": "Spend 500",
        "minimumOrderValue": 500,
        "products": [
            {"productId": 1, "promotionalPrice": "70"},
            {"productId": 2, "additionalDiscountPercentage": "150"},
        ],
    }])

    assert len(promotions) == 1
    promo = promotions[0]
    assert promo.products[1].promotional_price == Decimal("70")
    assert promo.products[2].additional_discount_percentage == 100

    cart = [build_cart_item(ProductPriceFacts(product_id=1, base_price=Decimal("100")), 1, promotions, NOW)]
    result = validate_cart(cart, promotions, NOW)
    assert result.suggestions[0].startswith("Add R430.00 more")


def test_negative_percentage_headline_becomes_zero():
    promo = parse_promotion({"id": 10, "promotionName": "Negative", "discountValue": -5})
    assert promo.discount_value == 0


def test_minimum_quantity_payload():
    promo = parse_promotion({
        "id": 20,
        "promotionName": "Any 3 for R100",
        "minimumQuantity": 3,
        "specialPricing": {"type": "fixed_total", "value": "100"},
        "products": [{"productId": 1}, {"productId": 2}],
    })
    assert promo.minimum_quantity == 3
    assert promo.special_pricing.type == SpecialPricingType.FIXED_TOTAL
    assert promo.special_pricing.value == Decimal("100")
    assert promo.minimum_order_value is None


def test_legacy_rules_payload():
    promo = parse_promotion({
        "id": 21,
        "promotionName": "Bundle",
        "rules": {
            "type": "minimum_quantity_same_promotion",
            "specialPricing": {"type": "extra_discount", "value": 140},
        },
    })
    # Без minimumQuantity правило требует 2 шт.
    assert promo.minimum_quantity == 2
    assert promo.special_pricing.type == SpecialPricingType.EXTRA_DISCOUNT
    assert promo.special_pricing.value == 100

    threshold = parse_promotion({
        "id": 22,
        "promotionName": "Spend 300",
        "rules": {"type": "minimum_order_value", "minimumValue": "300"},
    })
    assert isinstance(threshold, ThresholdDiscountPromotion)
    assert threshold.minimum_order_value == Decimal("300")


def test_zero_minimum_quantity_means_no_constraint():
    promo = parse_promotion({"id": 23, "promotionName": "Zero", "minimumQuantity": 0})
    assert promo.minimum_quantity is None


@pytest.mark.parametrize("payload, promotion_id", [
    ({"id": 7, "discountValue": 5}, 7),
    ({"id": 9, "promotionName": "No minimum", "kind": "threshold_discount"}, 9),
    ({"id": 10, "promotionName": "Negative", "discountType": "fixed", "discountValue": -5}, 10),
    ({"id": 12, "promotionName": "Bad bundle", "minimumQuantity": 2, "specialPricing": {"type": "fixed_total", "value": -1}}, 12),
    ({"id": 11, "promotionName": "Bad kind", "kind": "mystery"}, 11),
    ("not a promotion", None),
])
def test_malformed_payloads(payload, promotion_id):
    with pytest.raises(MalformedPromotionError) as exc_info:
        parse_promotion(payload)

    assert exc_info.value.promotion_id == promotion_id
    assert isinstance(exc_info.value, PricingEngineError)
    assert isinstance(exc_info.value, ValueError)


def test_parse_promotions_skips_malformed():
    records = []
    sink_id = logger.add(records.append, level="WARNING", format="{message}")
    try:
        promotions = parse_promotions([
            THRESHOLD_PAYLOAD,
            {"id": 7, "discountValue": 5},
            {"id": 13, "promotionName": "Flash", "products": [{"productId": 3, "promotionalPrice": "49.99"}]},
        ])
    finally:
        logger.remove(sink_id)

    assert [p.id for p in promotions] == [11, 13]
    assert any("Skipping malformed promotion 7" in str(record) for record in records)


def test_parsed_promotions_drive_cart_validation():
    promotions = parse_promotions([THRESHOLD_PAYLOAD])
    shoe = ProductPriceFacts(product_id=1, base_price=Decimal("100"), sale_price=Decimal("80"))
    sock = ProductPriceFacts(product_id=2, base_price=Decimal("40"))
    hat = ProductPriceFacts(product_id=5, base_price=Decimal("300"))

    cart = [
        build_cart_item(shoe, 3, promotions, NOW),  # 3 x 70.00
        build_cart_item(sock, 2, promotions, NOW),  # 2 x 40.00
        build_cart_item(hat, 1, promotions, NOW),   # вне акции
    ]
    assert cart[0].unit_price == Decimal("70.00")

    result = validate_cart(cart, promotions, NOW)
    assert result.is_valid is True
    assert result.suggestions == [
        'Add R210.00 more of eligible items to unlock 10% off ("Winter Bundle")'
    ]
    assert applicable_promotions(cart, promotions, NOW) == promotions
