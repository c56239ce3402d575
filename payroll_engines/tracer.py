"""
Engine call tracing (``payroll_engines.tracer``).

``@traced_engine`` wraps a calculator so every call leaves one
``PAYROLL_ENGINE_TRACE`` debug record: engine name and version, a short
fingerprint of the named keyword inputs, and the wall time taken.  Two
runs over the same snapshot produce the same fingerprints, which is how a
re-run payroll month can be matched against an earlier one in the logs.

A call that raises logs ``PAYROLL_ENGINE_FAILED`` with the same fields
and the exception propagates unchanged.

Only keyword arguments are fingerprinted, so engines are called with
keywords throughout.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import json
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

F = TypeVar("F", bound=Callable[..., Any])

FINGERPRINT_LENGTH = 16


def _plain(value: Any) -> Any:
    """Reduce a value to JSON-able primitives with a stable ordering."""
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return _plain(value.value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_plain(v) for v in value), key=repr)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...], kwargs: Mapping[str, Any],
) -> str:
    """First 16 hex chars of the SHA-256 of the named inputs.

    Absent fields count as ``None``.
    """
    selected = {name: _plain(kwargs.get(name)) for name in fingerprint_fields}
    canonical = json.dumps(selected, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fields = {
                "trace_type": "PAYROLL_ENGINE_TRACE",
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": (
                    compute_input_fingerprint(fingerprint_fields, kwargs)
                    if fingerprint_fields else ""
                ),
                "function": func.__qualname__,
            }
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception:
                fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 3)
                logger.warning("PAYROLL_ENGINE_FAILED", extra=fields, exc_info=True)
                raise
            fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 3)
            logger.debug("PAYROLL_ENGINE_TRACE", extra=fields)
            return result

        wrapper.engine_name = engine_name  # type: ignore[attr-defined]
        wrapper.engine_version = engine_version  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
