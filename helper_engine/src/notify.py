"""Broadcast of refresh notices to listening UI surfaces."""

import asyncio
import inspect
from typing import Any, Callable

from loguru import logger

LISTENER_TIMEOUT = 5.0  # seconds


class Broadcaster:
    """Delivers each message to every subscribed listener."""

    def __init__(self, timeout: float = LISTENER_TIMEOUT):
        self._listeners: list[Callable[[Any], Any]] = []
        self.timeout = timeout

    def subscribe(self, listener: Callable[[Any], Any]) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[Any], Any]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _deliver(self, listener: Callable[[Any], Any], message: Any) -> bool:
        try:
            result = listener(message)
            if inspect.isawaitable(result):
                await asyncio.wait_for(result, timeout=self.timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Broadcast to {listener!r} timed out after {self.timeout}s")
        except Exception as e:
            # Listener may not be ready
            logger.warning(f"Broadcast to {listener!r} failed: {e}")
        return False

    async def broadcast(self, message: Any) -> int:
        """Send to all listeners at once; a failing or hung listener is logged and skipped."""
        results = await asyncio.gather(*(self._deliver(listener, message) for listener in list(self._listeners)))
        return sum(results)
