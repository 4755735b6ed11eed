"""
Per-manager observer lists.

Every manager owns its own emitter with a fixed set of event names; there is
no global event bus.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List

logger = logging.getLogger(__name__)


class EventEmitter:
    """Callback registry with on/off/emit, tolerant of failing listeners."""

    def __init__(self, events: Iterable[str]):
        self._callbacks: Dict[str, List[Callable]] = {name: [] for name in events}

    @property
    def events(self) -> List[str]:
        return list(self._callbacks)

    def on(self, event: str, callback: Callable) -> None:
        """Register a callback. Unknown event names are ignored with a warning."""
        if event in self._callbacks:
            self._callbacks[event].append(callback)
        else:
            logger.warning(f"Ignoring listener for unknown event '{event}'")

    def off(self, event: str, callback: Callable) -> None:
        """Remove a callback for an event type."""
        if event in self._callbacks and callback in self._callbacks[event]:
            self._callbacks[event].remove(callback)

    def emit(self, event: str, data: Any = None) -> None:
        """Emit an event to all registered callbacks."""
        for callback in list(self._callbacks.get(event, [])):
            try:
                result = callback(data)
                # Handle async callbacks
                if asyncio.iscoroutine(result):
                    try:
                        asyncio.get_running_loop().create_task(result)
                    except RuntimeError:
                        result.close()
                        logger.warning(f"No running event loop, async listener for {event} skipped")
            except Exception as e:
                logger.error(f"Error in callback for {event}: {e}")
