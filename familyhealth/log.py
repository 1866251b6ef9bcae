"""
Structured logging setup.

Every module grabs a logger with ``structlog.get_logger(__name__)`` and binds
component context. JSON output is the default; development switches to the
console renderer through ``configure_logging``.
"""

import logging

import structlog

from familyhealth.config import LoggingConfig


def _processors(renderer: structlog.typing.Processor) -> list[structlog.typing.Processor]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Configure structlog and the stdlib root logger from LoggingConfig."""
    config = config or LoggingConfig()

    logging.basicConfig(format="%(message)s", level=getattr(logging, config.level))
    logging.getLogger().setLevel(getattr(logging, config.level))

    renderer: structlog.typing.Processor
    if config.format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=_processors(renderer),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
