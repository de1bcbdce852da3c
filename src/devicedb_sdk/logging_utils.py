"""Shared helpers for structured request logging."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from time import perf_counter
from typing import Dict, Generator

import requests

from .errors import DeviceDBError


def _duration_ms(start: float) -> float:
    return round((perf_counter() - start) * 1000, 3)


@contextmanager
def log_operation(
    logger: logging.Logger,
    operation: str,
    **context: object,
) -> Generator[Dict[str, object], None, None]:
    """Emit structured logs around a single DeviceDB call.

    Parameters
    ----------
    logger:
        Logger to emit records to.
    operation:
        Identifier for the operation (e.g. ``"bucket_batch"``).
    context:
        Additional key/value pairs to include in the log context. The yielded
        mapping can be mutated to add dynamic values before completion.
    """

    start = perf_counter()
    base: Dict[str, object] = {"operation": operation, **context}

    try:
        yield base
    except DeviceDBError as exc:
        logger.warning(
            "%s failed",
            operation,
            extra={
                **base,
                "status": "error",
                "status_code": exc.status_code,
                "duration_ms": _duration_ms(start),
                "error": exc.detail or str(exc),
            },
        )
        raise
    except requests.RequestException as exc:
        logger.warning(
            "%s failed",
            operation,
            extra={
                **base,
                "status": "error",
                "duration_ms": _duration_ms(start),
                "error": str(exc),
            },
        )
        raise
    else:
        logger.debug(
            "%s completed",
            operation,
            extra={**base, "status": "success", "duration_ms": _duration_ms(start)},
        )
