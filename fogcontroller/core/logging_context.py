"""
Scoped logging context.

`LoggingContext` pushes key/value pairs that `ContextFilter` copies onto
every record emitted while the context is active, e.g. the CLI command
being dispatched or the fog instance an agent request belongs to.
"""
import contextvars
import logging
from typing import Any, Dict

_log_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("fogcontroller_log_context", default={})


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class LoggingContext:
    """Context manager adding extra fields to all records of a logger."""

    def __init__(self, logger: logging.Logger, **fields: Any):
        self.logger = logger
        self.fields = fields
        self._token = None

    def __enter__(self):
        merged = dict(_log_context.get())
        merged.update(self.fields)
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None
        return False
