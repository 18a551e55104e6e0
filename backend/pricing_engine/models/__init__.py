from .product import ProductPriceFacts
from .promotion import (
    Promotion, PromotionBase, PromotionKind, DiscountType, PromotionProductInfo,
    SpecialPricing, SpecialPricingType,
    PercentageOffPromotion, FixedPriceOverridePromotion, ThresholdDiscountPromotion,
)
from .pricing import PricingResult, TimeRemaining, SpecialPricingResult
from .cart import CartItemWithDiscounts
from .validation import PromotionValidationResult

__all__ = [
    "ProductPriceFacts",
    "Promotion", "PromotionBase", "PromotionKind", "DiscountType", "PromotionProductInfo",
    "SpecialPricing", "SpecialPricingType",
    "PercentageOffPromotion", "FixedPriceOverridePromotion", "ThresholdDiscountPromotion",
    "PricingResult", "TimeRemaining", "SpecialPricingResult",
    "CartItemWithDiscounts",
    "PromotionValidationResult",
]
