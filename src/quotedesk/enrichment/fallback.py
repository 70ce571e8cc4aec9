"""Ordered "first success wins" evaluation of optional-result strategies."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def _strategy_name(strategy: Callable) -> str:
    return getattr(strategy, "__name__", None) or type(strategy).__name__


def first_success(strategies: Sequence[Callable[..., Optional[T]]], *args, **kwargs) -> Optional[T]:
    """Call each strategy in order and return the first non-``None`` result.

    A strategy that raises is logged and treated as having found nothing.
    """
    for strategy in strategies:
        name = _strategy_name(strategy)
        try:
            result = strategy(*args, **kwargs)
        except Exception as exc:
            LOGGER.warning("Strategy %s failed: %s", name, exc)
            continue
        if result is not None:
            LOGGER.debug("Strategy %s succeeded", name)
            return result
        LOGGER.debug("Strategy %s found nothing", name)
    return None
