"""
Structured JSON logging for the document totals engine.

Every record under the ``docform`` logger becomes one JSON object per line:

    {"ts": ..., "level": "DEBUG", "logger": "docform.services.sync",
     "message": "line_amount_written", "document_id": "...",
     "document_type": "invoice", "index": 0, "new_amount": "212.40"}

Per-document fields come from LogContext; per-call fields come from the
``extra`` mapping.  Exceptions raised with ``exc_info`` contribute their
type, message, ``code`` and public attributes as ``exc_*`` keys.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_EMPTY: Mapping[str, str] = MappingProxyType({})

_context: ContextVar[Mapping[str, str]] = ContextVar(
    "docform_log_context", default=_EMPTY
)


class LogContext:
    """
    Per-task log fields, carried in a single ContextVar.

    Only the names in FIELDS are accepted; anything else and None values
    are ignored.  Each asyncio task sees its own copy.
    """

    FIELDS: frozenset[str] = frozenset(
        {"correlation_id", "document_id", "document_type", "actor_id"}
    )

    @classmethod
    def _merged(cls, fields: Mapping[str, str | None]) -> Mapping[str, str]:
        current = dict(_context.get())
        for name, value in fields.items():
            if name in cls.FIELDS and value is not None:
                current[name] = value
        return MappingProxyType(current)

    @classmethod
    def set(cls, **fields: str | None) -> None:
        _context.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Apply ``fields`` for the duration of the block, then restore."""
        token = _context.set(cls._merged(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

# Attributes every LogRecord has; anything else on a record came from extra.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, (Decimal, UUID)):
        return str(obj)
    return repr(obj)


class StructuredFormatter(logging.Formatter):
    """One JSON line per record: base fields, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))
        return json.dumps(payload, default=_json_default)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # DocformError subclasses keep their context as public attributes.
        fields.update(
            (f"exc_{name}", value)
            for name, value in vars(exc).items()
            if not name.startswith("_")
        )
        fields["traceback"] = self.formatException(record.exc_info)
        return fields


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

_ROOT_NAME = "docform"

_state_lock = threading.Lock()
_handler_installed = False


def get_logger(name: str) -> logging.Logger:
    """Logger ``docform.<name>``."""
    return logging.getLogger(f"{_ROOT_NAME}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a StructuredFormatter handler to the ``docform`` logger.

    Only the first call has an effect until reset_logging() is called.
    Records do not propagate to the root logger once configured.
    """
    global _handler_installed
    with _state_lock:
        if _handler_installed:
            return
        _handler_installed = True

    if handler is None:
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger(_ROOT_NAME)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(handler)


def reset_logging() -> None:
    """Undo configure_logging(). FOR TESTING ONLY."""
    global _handler_installed
    with _state_lock:
        _handler_installed = False
    root = logging.getLogger(_ROOT_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)
    root.propagate = True
