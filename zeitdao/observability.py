"""Structured logging for the engine, CLI and API.

Call ``configure_logging`` once at startup; modules then use
``structlog.get_logger(__name__)``. Production output is JSON, development
output is a coloured console renderer. Rendered lines go through the standard
library root logger to stderr.
"""

import logging
import os
import sys
from typing import List

import structlog
from structlog.typing import FilteringBoundLogger, Processor

from . import config


def _get_log_level() -> int:
    level_name = os.getenv(config.LOG_LEVEL_ENV, config.DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(environment: str = "") -> None:
    environment = environment or os.getenv(config.LOG_ENV_ENV, "production")
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if environment == "production":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    level = _get_log_level()
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_engine(identity: str) -> FilteringBoundLogger:
    return structlog.get_logger("zeitdao.engine").bind(engine=identity)
