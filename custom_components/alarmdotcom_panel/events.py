"""Publish/subscribe for alarm state changes and timeline entries."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from .models import StateChangeEvent, TimelineEntry

_LOGGER = logging.getLogger(__name__)


class StateChangeNotifier:
    """Dispatches state-change events and timeline entries to subscribers."""

    def __init__(self) -> None:
        """Initialize the notifier with no subscribers."""
        self._state_handlers: list[Callable[[StateChangeEvent], None]] = []
        self._timeline_handlers: list[Callable[[TimelineEntry], None]] = []

    def subscribe(
        self,
        handler: Callable[[StateChangeEvent], None],
    ) -> Callable[[], None]:
        """Register a handler for state-change events.

        Args:
            handler: Function to call when the polled state changes.

        Returns:
            A function to unregister the handler.

        """
        self._state_handlers.append(handler)

        def unregister() -> None:
            if handler in self._state_handlers:
                self._state_handlers.remove(handler)

        return unregister

    def subscribe_timeline(
        self,
        handler: Callable[[TimelineEntry], None],
    ) -> Callable[[], None]:
        """Register a handler for timeline entries.

        Args:
            handler: Function to call for every appended timeline entry.

        Returns:
            A function to unregister the handler.

        """
        self._timeline_handlers.append(handler)

        def unregister() -> None:
            if handler in self._timeline_handlers:
                self._timeline_handlers.remove(handler)

        return unregister

    def emit_state_change(self, event: StateChangeEvent) -> None:
        """Deliver a state-change event to every subscriber."""
        for handler in list(self._state_handlers):
            try:
                handler(event)
            except Exception:
                _LOGGER.exception("Error in state change handler")

    def emit_timeline(self, entry: TimelineEntry) -> None:
        """Deliver a timeline entry to every subscriber."""
        for handler in list(self._timeline_handlers):
            try:
                handler(entry)
            except Exception:
                _LOGGER.exception("Error in timeline handler")
