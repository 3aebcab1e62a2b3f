"""structlog setup: every event carries the service, environment and request context."""

import logging

import structlog

from groovara.config import Settings

SERVICE_NAME = "groovara"

# Loggers that drown out reveal events at INFO
_QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def service_context(settings: Settings) -> structlog.types.Processor:
    """Processor stamping service and environment onto events that lack them."""

    def _add(_logger: object, _method: str, event_dict: structlog.types.EventDict) -> structlog.types.EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("environment", settings.environment)
        return event_dict

    return _add


def setup_logging(settings: Settings) -> None:
    """Configure structlog once per app; ``log_format`` picks JSON or console rendering."""
    renderer: structlog.types.Processor
    if settings.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            service_context(settings),
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
