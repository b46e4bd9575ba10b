"""Structured logging utilities with per-thread ledger context."""

import functools
import logging
import threading
import uuid
from typing import Any, Callable, Dict, Optional

_thread_local = threading.local()

# Field names whose values never reach a log line
SENSITIVE_FIELDS = {
    "password",
    "token",
    "secret",
    "email",
    "receipt",
    "reference",
    "authorization",
}

REDACTED = "***REDACTED***"


def new_correlation_id() -> str:
    """Generate an id that ties together the log lines of one command."""
    return uuid.uuid4().hex[:12]


def current_context() -> Dict[str, Any]:
    """Return a copy of the fields bound on this thread."""
    return dict(getattr(_thread_local, "context", {}))


class LogContext:
    """
    Context manager binding ledger fields to every log record in its scope.

    Nested contexts merge with the outer one; leaving a context restores the
    fields that were bound before it.

    Example:
        with LogContext(user_id="u1", invoice_id=invoice.id):
            logger.info("Replacing invoice items")
            # record carries user_id and invoice_id
    """

    def __init__(self, **fields):
        self.fields = {k: v for k, v in fields.items() if v is not None}
        self._previous: Optional[Dict[str, Any]] = None

    def __enter__(self):
        self._previous = current_context()
        _thread_local.context = {**self._previous, **self.fields}
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _thread_local.context = self._previous or {}


class LedgerContextFilter(logging.Filter):
    """Copy the bound LogContext fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in getattr(_thread_local, "context", {}).items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def sanitize_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Redact sensitive values in a (possibly nested) dictionary.

    Example:
        >>> sanitize_sensitive_data({"client": {"name": "Acme", "email": "a@b.c"}})
        {'client': {'name': 'Acme', 'email': '***REDACTED***'}}
    """
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        if any(sensitive in key.lower() for sensitive in SENSITIVE_FIELDS):
            sanitized[key] = REDACTED if value is not None else None
        elif isinstance(value, dict):
            sanitized[key] = sanitize_sensitive_data(value)
        else:
            sanitized[key] = value
    return sanitized


def log_function_call(
    func: Optional[Callable] = None, *, include_args: bool = False, level: str = "DEBUG"
) -> Callable:
    """
    Decorator logging entry, exit and failure of a ledger operation.

    Keyword arguments are passed through ``sanitize_sensitive_data`` before
    being logged.

    Example:
        @log_function_call(include_args=True, level="INFO")
        def record(self, invoice_id, user_id, amount):
            ...
    """

    def decorator(f: Callable) -> Callable:
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(f.__module__)
            log_level = getattr(logging, level.upper())

            if include_args:
                logger.log(
                    log_level,
                    f"Entering {f.__qualname__} with {sanitize_sensitive_data(kwargs)}",
                )
            else:
                logger.log(log_level, f"Entering {f.__qualname__}")

            try:
                result = f(*args, **kwargs)
            except Exception as e:
                logger.log(
                    log_level, f"{f.__qualname__} failed: {type(e).__name__}: {e}"
                )
                raise

            logger.log(log_level, f"Exiting {f.__qualname__}")
            return result

        return wrapper

    if func is None:
        return decorator
    return decorator(func)
