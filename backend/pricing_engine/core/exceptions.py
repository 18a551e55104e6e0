from typing import Optional


class PricingEngineError(Exception):
    """Базовая ошибка движка цен"""


class MalformedPromotionError(PricingEngineError, ValueError):
    """Данные акции не удалось привести к валидной модели"""

    def __init__(self, message: str, promotion_id: Optional[int] = None):
        super().__init__(message)
        self.promotion_id = promotion_id
