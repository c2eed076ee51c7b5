"""Request ID logging context for tracing one scheduling call across modules.

Usage:
    from scheduler.logging_context import get_request_logger, reset_request_id, set_request_id

    token = set_request_id("slots-team_north-2025-03-17")
    logger = get_request_logger(__name__)
    logger.info("Resolving availability")  # -> [slots-team_north-2025-03-17] Resolving availability
    reset_request_id(token)
"""

import logging
from contextvars import ContextVar, Token

from .config import AppConfig

_request_id: ContextVar[str] = ContextVar("request_id", default="-")

LOG_FORMAT = "%(asctime)s [%(request_id)s] %(name)s - %(levelname)s - %(message)s"


def set_request_id(request_id: str) -> Token:
    """Set the correlation ID for the current context. Keep the token to restore the previous one."""
    return _request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    _request_id.reset(token)


def get_request_id() -> str:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def get_request_logger(name: str) -> logging.Logger:
    """Return a logger with the RequestIdFilter attached."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestIdFilter) for f in logger.filters):
        logger.addFilter(RequestIdFilter())
    return logger


def configure_logging(config: AppConfig) -> None:
    """Install a root handler whose format includes the request ID."""
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler],
    )
