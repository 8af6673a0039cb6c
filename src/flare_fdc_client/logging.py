"""structlog configuration for scripts using the FDC client."""

import logging
import os
from typing import Optional

import structlog


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure structlog and route stdlib logging through the same renderer.

    Args:
        level: Log level name. Defaults to $LOG_LEVEL or "INFO".
        log_format: "console" (default) or "json". Defaults to $LOG_FORMAT.
    """
    level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    log_format = (log_format or os.getenv("LOG_FORMAT") or "console").lower()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer, foreign_pre_chain=shared_processors
        )
    )
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)

    # web3 and aiohttp are chatty at DEBUG
    for name in ("web3", "aiohttp", "urllib3", "asyncio"):
        logging.getLogger(name).setLevel(os.getenv("LOG_LEVEL_LIBS", "WARNING"))
