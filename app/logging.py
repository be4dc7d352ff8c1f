"""Logging setup for the route service."""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", json_output: bool = False) -> structlog.stdlib.BoundLogger:
    """Configure structlog on top of stdlib logging.

    Args:
        level: Root logging level name
        json_output: Render JSON lines instead of the console renderer

    Returns:
        Logger bound to the service name
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("text_route")
    logger.debug("Logging initialized", level=level, json=json_output)
    return logger
