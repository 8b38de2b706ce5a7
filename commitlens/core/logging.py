"""Structured logging — structlog events rendered through stdlib handlers.

Environment:
    COMMITLENS_LOG_LEVEL   application log level (default INFO)
    COMMITLENS_LOG_FORMAT  ``console`` or ``json`` (default console)
    COMMITLENS_LOG_SQL     ``1`` to log every SQL statement (default off)
"""

from __future__ import annotations

import logging.config
import os
from typing import Any

import structlog

_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def _logger_levels(level: str, log_sql: bool) -> dict[str, dict[str, Any]]:
    return {
        "commitlens": {"level": level},
        "uvicorn.error": {"level": "INFO"},
        "uvicorn.access": {"level": "WARNING"},
        "sqlalchemy.engine": {"level": "INFO" if log_sql else "WARNING"},
        "asyncpg": {"level": "WARNING"},
        "aiosqlite": {"level": "WARNING"},
    }


def setup_logging() -> None:
    """Route structlog and stdlib records through one formatter on stdout."""
    level = os.environ.get("COMMITLENS_LOG_LEVEL", "INFO").upper()
    log_format = os.environ.get("COMMITLENS_LOG_FORMAT", "console").lower()
    log_sql = os.environ.get("COMMITLENS_LOG_SQL", "0") == "1"

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = {
        "()": structlog.stdlib.ProcessorFormatter,
        "foreign_pre_chain": _PRE_CHAIN,
        "processors": [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(log_format),
        ],
    }
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"structlog": formatter},
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "structlog",
                },
            },
            "root": {"handlers": ["stdout"], "level": level},
            "loggers": _logger_levels(level, log_sql),
        }
    )
