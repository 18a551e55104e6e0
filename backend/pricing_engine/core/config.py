from pydantic_settings import BaseSettings, SettingsConfigDict
from decimal import Decimal


class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"

    # Money
    CURRENCY_SYMBOL: str = "R"
    PRICE_DECIMAL_PLACES: int = 2

    # Kill switch for promotion checks; checkout never depends on them
    PROMOTIONS_ENABLED: bool = True

    @property
    def money_quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.PRICE_DECIMAL_PLACES)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
