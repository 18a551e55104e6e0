import sys
from loguru import logger
from pricing_engine.core.config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str | None = None) -> None:
    """
    Заменить sink'и loguru одним stderr sink на уровне LOG_LEVEL.
    Вызывается приложением явно: библиотека сама чужие sink'и не трогает.
    """
    logger.remove()
    logger.configure(extra={"name": "pricing_engine"})
    logger.add(sys.stderr, level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)


def get_logger(name: str | None = None):
    """Логгер с контекстом модуля"""
    if name:
        return logger.bind(name=name)
    return logger
