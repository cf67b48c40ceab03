"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging.config
from typing import Optional

import structlog

_CONFIGURED = False

_SHARED_PROCESSORS = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.dict_tracebacks,
]


def get_request_id() -> Optional[str]:
    """Get the request_id bound to the current context, if any."""
    try:
        ctx = structlog.contextvars.get_contextvars()
        return ctx.get("request_id")
    except (TypeError, AttributeError):
        return None


def bind_request_context(request_id: str, query: Optional[str] = None) -> None:
    """Bind request_id (and a truncated query) to the current context."""
    values: dict[str, str] = {"request_id": request_id}
    if query is not None:
        values["query"] = query[:120]
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    """Remove request-scoped keys from the current context."""
    structlog.contextvars.unbind_contextvars("request_id", "query")


def _build_renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer()


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog over stdlib logging. Idempotent - safe to call multiple times.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: "json" for machine-readable lines, "console" for local runs
    """
    global _CONFIGURED

    if _CONFIGURED:
        return

    level_num = getattr(logging, log_level.upper())

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": _build_renderer(log_format),
                    "foreign_pre_chain": _SHARED_PROCESSORS,
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "structured",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "level": log_level.upper(),
                "handlers": ["console"],
            },
            "loggers": {
                "federated_retrieval": {
                    "level": log_level.upper(),
                    "propagate": False,
                    "handlers": ["console"],
                },
            },
        }
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    _CONFIGURED = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
