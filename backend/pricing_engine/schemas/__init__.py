from .promotion import PromotionPayload, PromotionProductPayload, PromotionRulePayload, SpecialPricingPayload

__all__ = [
    "PromotionPayload", "PromotionProductPayload", "PromotionRulePayload", "SpecialPricingPayload",
]
