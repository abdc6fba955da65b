"""Structured logging for the trading core.

Every module logs through ``get_logger(__name__)`` with snake_case event
names and key/value context. The loop binds a ``tick`` number through
structlog.contextvars, so each line of a tick carries it.

Credentials never reach a sink: ``redact_secrets`` masks the known
credential keys before rendering, and the HTTP and websocket libraries are
held at WARNING because their INFO lines echo full request URLs, and a
signed URL carries its signature.
"""

import logging

import structlog

_REDACTED_KEYS = frozenset({"api_key", "api_secret", "secret", "signature", "credentials"})

# Third-party loggers that are too chatty (or too revealing) at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "websockets", "aiosqlite")


def redact_secrets(
    logger: logging.Logger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Mask credential-bearing fields in an event dict."""
    for key in _REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format.lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """Route structlog through stdlib logging with a single stream handler.

    Args:
        log_level: Root level name; unknown names fall back to INFO.
        log_format: "json" for unattended runs, anything else renders
            human-readable console output.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
