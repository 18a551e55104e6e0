from typing import List
from pydantic import Field
from .base import FrozenModel


class PromotionValidationResult(FrozenModel):
    is_valid: bool = True
    # Только обязательные акции могут блокировать оформление
    can_proceed_to_checkout: bool = True
    messages: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    # Сколько первых messages блокируют checkout; наружу не отдаём
    blocking_count: int = Field(default=0, ge=0, exclude=True)

    @property
    def blocking_messages(self) -> List[str]:
        return self.messages[:self.blocking_count]

    @classmethod
    def all_clear(cls) -> "PromotionValidationResult":
        return cls()
