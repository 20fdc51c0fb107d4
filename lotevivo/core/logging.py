"""structlog setup for the LoteVivo API.

Every record, ours or a library's (uvicorn, SQLAlchemy, asyncpg), goes through
the same processor chain and ends up as one JSON line in production or a
colored console line in debug. Request-scoped context (correlation id, tenant,
user) is merged in from context vars.
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "asyncpg", "redis")


def add_correlation_id(logger, method, event_dict):
    """Copy the X-Request-ID of the current request onto the record."""
    request_id = correlation_id.get(None)
    if request_id and "correlation_id" not in event_dict:
        event_dict["correlation_id"] = request_id
    return event_dict


def bind_request_context(**values) -> None:
    """Attach caller context (tenant_id, user_id) to every later log line of this request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**{k: v for k, v in values.items() if v is not None})


def _processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_structlog(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Route structlog and stdlib logging through one formatter.

    Must run before the first ``structlog.get_logger()`` call binds, since
    loggers are cached on first use.

    Args:
        log_level: Root level name, e.g. "INFO"
        json_logs: JSON lines when True, ConsoleRenderer otherwise
    """
    chain = _processors()
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": chain,
                    "processors": [structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
                },
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "structured",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"handlers": ["stdout"], "level": log_level},
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        }
    )

    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
