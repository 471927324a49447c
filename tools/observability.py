"""Observability helpers for instrumenting store and selector operations."""

from __future__ import annotations

import inspect
import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from stylist_app.logging_config import ensure_correlation_id, get_logger, log_event, redact_for_log

LOGGER = get_logger(__name__)
F = TypeVar("F", bound=Callable[..., Any])


def _preview_kwargs(kwargs: dict, max_keys: int = 6) -> dict:
    preview: dict = {}
    for idx, (key, value) in enumerate(kwargs.items()):
        if idx >= max_keys:
            preview["truncated"] = True
            break
        preview[key] = value
    return redact_for_log(preview)


def _log_started(operation: str, correlation_id: str, kwargs: dict) -> None:
    log_event(
        LOGGER,
        logging.INFO,
        "operation_started",
        operation=operation,
        correlation_id=correlation_id,
        kwargs=_preview_kwargs(kwargs),
    )


def _log_finished(operation: str, correlation_id: str, start: float, failed: bool) -> None:
    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    log_event(
        LOGGER,
        logging.ERROR if failed else logging.INFO,
        "operation_failed" if failed else "operation_completed",
        operation=operation,
        correlation_id=correlation_id,
        duration_ms=duration_ms,
        exc_info=failed,
    )


def instrument_operation(operation: str) -> Callable[[F], F]:
    """Wrap a sync or async callable to emit structured start/finish logs."""

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                correlation_id = ensure_correlation_id()
                start = time.perf_counter()
                _log_started(operation, correlation_id, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception:
                    _log_finished(operation, correlation_id, start, failed=True)
                    raise
                _log_finished(operation, correlation_id, start, failed=False)
                return result

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            correlation_id = ensure_correlation_id()
            start = time.perf_counter()
            _log_started(operation, correlation_id, kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception:
                _log_finished(operation, correlation_id, start, failed=True)
                raise
            _log_finished(operation, correlation_id, start, failed=False)
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["instrument_operation"]
