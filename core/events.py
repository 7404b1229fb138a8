"""Explicit selection event channel between the results graph and the core.

A graph click publishes ``SelectionChanged``; subscribers (the controller)
react synchronously in subscription order.  ``Notice`` values carry the
outcome of user actions back to the presentation layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionChanged:
    ordinal: Optional[int]


@dataclass(frozen=True)
class Notice:
    """One user-facing message; level is "success", "warning" or "error"."""

    level: str
    message: str


Listener = Callable[[SelectionChanged], None]


class SelectionDispatcher:
    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, event: SelectionChanged) -> None:
        logger.debug("Selection changed to %s", event.ordinal)
        for listener in list(self._listeners):
            listener(event)
