"""
Request-scoped logging context.

Log records emitted while a request is being handled carry its request id
(and, when known, the signed-in user and the incident being worked on) so
a relay failure can be traced back to the request that caused it.
"""

import contextvars
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

CONTEXT_FIELDS = ('request_id', 'user_id', 'incident_id')

request_context: contextvars.ContextVar[dict] = contextvars.ContextVar(
    'request_context', default={}
)


def new_request_id() -> str:
    return uuid.uuid4().hex[:16]


class RequestContextFilter(logging.Filter):
    """
    Handler filter that copies the current context onto every record.

    Missing fields are set to ``-`` so format strings referencing
    ``%(request_id)s`` never fail.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = request_context.get({})
        for key in CONTEXT_FIELDS:
            if not hasattr(record, key):
                setattr(record, key, ctx.get(key) or '-')
        return True


class ContextualLogger(logging.LoggerAdapter):
    """
    Logger adapter that injects the request context into ``extra``.

    Usage:
        logger = get_logger(__name__)
        with LoggingContext(request_id='abc-123'):
            logger.info("Relaying sign in")
    """

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        ctx = request_context.get({})
        extra = dict(kwargs.get('extra', {}))
        for key in CONTEXT_FIELDS:
            if ctx.get(key) is not None:
                extra.setdefault(key, ctx[key])
        kwargs['extra'] = extra
        return msg, kwargs


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON objects with consistent fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value not in (None, '-'):
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def get_logger(name: str) -> ContextualLogger:
    """Get a contextual logger for ``name`` (typically ``__name__``)."""
    return ContextualLogger(logging.getLogger(name), {})


def set_context(**kwargs: Any) -> contextvars.Token:
    """
    Add values to the request context.

    Returns:
        Token to reset context later

    Usage:
        token = set_context(request_id='abc-123')
        try:
            ...
        finally:
            request_context.reset(token)
    """
    current = request_context.get({}).copy()
    current.update(kwargs)
    return request_context.set(current)


def get_context() -> dict:
    """Get current request context."""
    return request_context.get({}).copy()


def clear_context() -> None:
    """Clear request context."""
    request_context.set({})


class LoggingContext:
    """
    Context manager for setting logging context.

    Usage:
        with LoggingContext(request_id='abc-123'):
            logger.info("Processing")  # Includes request_id
    """

    def __init__(self, **kwargs: Any):
        self.kwargs = kwargs
        self.token: Optional[contextvars.Token] = None

    def __enter__(self):
        self.token = set_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token:
            request_context.reset(self.token)
        return False
