"""
Debounced input.

Collapses a burst of values into a single "stable" value, delivered once the
input has been quiet for ``delay`` seconds.
"""

import asyncio
import logging
from typing import Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Debouncer(Generic[T]):
    """
    Each ``observe`` cancels the pending timer (if any) and starts a new one,
    so at most one timer is ever pending. Callbacks receive the latest value
    and run on the event loop; they must not block.
    """

    def __init__(self, delay: float = 0.3):
        self.delay = delay
        self._callbacks: List[Callable[[T], None]] = []
        self._timer: Optional[asyncio.Task] = None

    def on_stable(self, callback: Callable[[T], None]) -> None:
        self._callbacks.append(callback)

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def observe(self, value: T) -> None:
        """
        Record a new raw value and restart the quiet-period timer.

        Must be called from within a running event loop.
        """
        self._cancel()
        self._timer = asyncio.get_running_loop().create_task(self._fire_later(value))

    def close(self) -> None:
        """Drop the pending timer without firing it."""
        self._cancel()

    def _cancel(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _fire_later(self, value: T) -> None:
        await asyncio.sleep(self.delay)
        # Detach first so a callback calling observe() does not cancel itself.
        self._timer = None
        for callback in list(self._callbacks):
            try:
                callback(value)
            except Exception:
                logger.exception("Debounce callback failed")
