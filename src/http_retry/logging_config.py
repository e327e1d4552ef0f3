"""Structured logging setup for applications using http-retry.

The library itself only calls ``structlog.get_logger(__name__)``; nothing is
configured on import. Applications that want the retry events (scheduling,
exhaustion, Retry-After rejection) rendered consistently call
configure_logging() once at startup:

    from http_retry import configure_logging
    configure_logging()  # LOG_LEVEL / ENVIRONMENT / APP_NAME from settings

Production renders one JSON object per line, anything else a console layout.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from http_retry.config import Settings, settings as default_settings

# Loggers that echo every request; a retry chain would repeat each line
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


class AppContext:
    """Processor stamping every event with the application name and version."""

    def __init__(self, app_name: str, app_version: str):
        self.app_name = app_name
        self.app_version = app_version

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", self.app_name)
        event_dict.setdefault("app_version", self.app_version)
        return event_dict


def add_app_context(settings: Optional[Settings] = None) -> AppContext:
    """Build the app-context processor from APP_NAME and APP_VERSION."""
    settings = settings or default_settings
    return AppContext(settings.APP_NAME, settings.APP_VERSION)


def build_processors(settings: Settings, production: bool) -> list[Processor]:
    """Processors shared by structlog events and foreign stdlib records."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_app_context(settings),
    ]
    if production:
        processors.append(structlog.processors.format_exc_info)
    return processors


def configure_logging(
    log_level: Optional[str] = None,
    environment: Optional[str] = None,
    settings: Optional[Settings] = None,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """Route structlog and stdlib logging through one formatted handler.

    Args:
        log_level: Overrides settings.LOG_LEVEL
        environment: Overrides settings.ENVIRONMENT ("production" selects JSON)
        settings: Source of the defaults (global settings if None)
        stream: Output stream (sys.stdout if None)

    Returns:
        The installed root handler. Calling again replaces it; handlers
        installed by the application are left alone.
    """
    settings = settings or default_settings
    level_name = (log_level or settings.LOG_LEVEL).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    production = (environment or settings.ENVIRONMENT).lower() == "production"
    stream = stream or sys.stdout

    shared = build_processors(settings, production)
    renderer: Processor
    if production:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.set_name("http_retry")
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared,
        )
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == "http_retry":
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.get_logger(__name__).debug(
        "Logging configured",
        log_level=level_name,
        environment=environment or settings.ENVIRONMENT,
        renderer="json" if production else "console",
    )
    return handler
