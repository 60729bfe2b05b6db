"""structlog setup: one JSON object per event in production, colored lines locally."""

import logging

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from sampler.config import Settings

SERVICE_NAME = "sampler-mobile-api"

# Third-party loggers that log every outbound call at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


def service_stamp(settings: Settings) -> Processor:
    """Processor adding the service name, version and environment to every event."""

    def stamp(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("version", settings.app_version)
        event_dict.setdefault("environment", settings.environment)
        return event_dict

    return stamp


def setup_logging(settings: Settings) -> None:
    renderer: Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            service_stamp(settings),
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = logging.getLevelName(settings.log_level.upper())
    logging.basicConfig(level=level if isinstance(level, int) else logging.INFO)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
