import structlog
import logging
from .config import Settings, EnvironmentType


def _resolve_level(settings: Settings) -> int:
    if settings.ENVIRONMENT == EnvironmentType.PRODUCTION:
        return logging.INFO
    return logging.getLevelName(settings.LOG_LEVEL.upper()) if settings.LOG_LEVEL else logging.DEBUG


def setup_logging(settings: Settings) -> None:
    level = _resolve_level(settings)
    if not isinstance(level, int):
        level = logging.DEBUG

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.ENVIRONMENT == EnvironmentType.DEVELOPMENT:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    # uvicorn and asyncio still log through the standard library
    logging.basicConfig(level=level, format="%(message)s")

    structlog.configure(
        processors=processors,
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
