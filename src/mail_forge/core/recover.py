"""Single policy for recoverable build steps.

Minification, beautification and optional stylesheet chunks must never fail a
build on their own: the step is attempted and, on any error, a warning is
logged and the fallback value is used instead.
"""

import logging
from collections.abc import Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def try_recoverable(fn: Callable[[], T], fallback: T, *, what: str) -> T:
    try:
        return fn()
    except Exception as exc:  # noqa: BLE001
        logger.warning("%s failed, continuing without it: %s", what, exc)
        return fallback
