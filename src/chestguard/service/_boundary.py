"""Exception boundary for the service layer."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from chestguard.structured_logging import get_logger

logger = get_logger(__name__)

R = TypeVar("R")


def guarded(fallback: Callable[[], R]) -> Callable[[Callable[..., R]], Callable[..., R]]:
    """Convert any exception raised by a service method into ``fallback()``.

    The exception is logged with traceback; it never reaches the host.
    """

    def decorate(method: Callable[..., R]) -> Callable[..., R]:
        @functools.wraps(method)
        def wrapper(*args: Any, **kwargs: Any) -> R:
            try:
                return method(*args, **kwargs)
            except Exception:
                logger.exception("Unexpected error in service call", operation=method.__name__)
                return fallback()

        return wrapper

    return decorate
