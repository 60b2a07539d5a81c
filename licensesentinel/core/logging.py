"""Structured logging configuration: structlog over stdlib logging.

Commands print their reports to stdout; every log line goes to stderr so the
two never interleave in piped output.
"""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

LOG_LEVEL_ENV = "LICENSESENTINEL_LOG_LEVEL"
LOG_FORMAT_ENV = "LICENSESENTINEL_LOG_FORMAT"


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog and stdlib logging.

    ``LICENSESENTINEL_LOG_LEVEL`` overrides the level (WARNING, or DEBUG with
    *verbose*). ``LICENSESENTINEL_LOG_FORMAT`` selects ``console`` or ``json``.
    """
    log_level = os.environ.get(LOG_LEVEL_ENV, "DEBUG" if verbose else "WARNING").upper()
    log_format = os.environ.get(LOG_FORMAT_ENV, "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "loggers": {
                "licensesentinel": {
                    "handlers": ["stderr"],
                    "level": log_level,
                    "propagate": False,
                },
            },
        }
    )
