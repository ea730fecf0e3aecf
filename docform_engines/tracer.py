"""
docform_engines.tracer -- DOCFORM_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` wraps a pure calculator and, when DEBUG is enabled
    on ``docform.engines.tracer``, logs one record per call with the
    engine name and version, a fingerprint of the selected arguments and
    the elapsed time.  Arguments and results pass through untouched.

Architecture position:
    Engines -- support code for the calculation layer.  Depends only on
    docform_kernel.logging_config.

Invariants enforced:
    - The fingerprint depends on argument values only: positional and
      keyword calls, Decimal("1.0") and Decimal("1.00"), and dict key
      order all give the same hash.
    - With DEBUG disabled the wrapper only forwards the call.

Failure modes:
    - A fingerprint field the call did not supply hashes as "null".

Usage:
    @traced_engine("tax", "1.0", fingerprint_fields=("taxable_base",))
    def tax_amount(taxable_base, rate_percent, treatment):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable, Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

from docform_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_TYPE = "DOCFORM_ENGINE_TRACE"


def _canonicalize(value: Any) -> str:
    """Stable text form of an argument for hashing."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return _canonicalize(value.value)
    if isinstance(value, Decimal):
        return str(value.normalize()) if value.is_finite() else str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        body = ",".join(
            f"{key}:{_canonicalize(value[key])}" for key in sorted(value, key=str)
        )
        return "{" + body + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """First 16 hex chars of SHA-256 over ``name=value`` for each field."""
    digest = hashlib.sha256()
    for name in fingerprint_fields:
        digest.update(f"{name}={_canonicalize(arguments.get(name))}|".encode())
    return digest.hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorate a pure engine function so each call emits DOCFORM_ENGINE_TRACE.

    Args:
        engine_name: Identifier logged as ``engine_name`` (e.g. "tax").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Parameter names hashed into ``input_fingerprint``.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def traced(*args: Any, **kwargs: Any) -> Any:
            if not _logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)

            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fingerprint = compute_input_fingerprint(
                    fingerprint_fields, bound.arguments
                )

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = (time.perf_counter() - started) * 1000

            _logger.debug(TRACE_TYPE, extra={
                "trace_type": TRACE_TYPE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": round(elapsed_ms, 3),
                "function": func.__qualname__,
            })
            return result

        return traced

    return decorator
