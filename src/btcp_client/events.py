"""Local event subscriptions for the client."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

from btcp_client.models.events import ClientEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Any]
Unsubscribe = Callable[[], None]


class EventEmitter:
    """Maps each ClientEvent to its subscribed handlers.

    emit() iterates over a snapshot of the handler list, so a handler may
    unsubscribe itself or others mid-emit without skipping or
    double-invoking the rest. Handler exceptions are logged, never raised.
    Coroutine handlers are scheduled as tasks on the running loop.
    """

    def __init__(self) -> None:
        self._handlers: dict[ClientEvent, list[EventHandler]] = {}
        self._pending: set[asyncio.Task] = set()

    def on(self, event: ClientEvent | str, handler: EventHandler) -> Unsubscribe:
        """Subscribe to an event.

        Returns:
            A callable that removes this subscription
        """
        key = ClientEvent(event)
        handlers = self._handlers.setdefault(key, [])
        if handler not in handlers:
            handlers.append(handler)
        return lambda: self.off(key, handler)

    def off(self, event: ClientEvent | str, handler: EventHandler) -> None:
        """Remove a subscription. Idempotent."""
        handlers = self._handlers.get(ClientEvent(event), [])
        try:
            handlers.remove(handler)
        except ValueError:
            pass

    def once(self, event: ClientEvent | str, handler: EventHandler) -> Unsubscribe:
        """Subscribe to the next occurrence of an event only."""
        key = ClientEvent(event)

        def _once(payload: Any) -> Any:
            self.off(key, _once)
            return handler(payload)

        return self.on(key, _once)

    def emit(self, event: ClientEvent | str, payload: Any = None) -> None:
        key = ClientEvent(event)
        for handler in list(self._handlers.get(key, [])):
            try:
                result = handler(payload)
            except Exception:
                logger.exception(f"Error in event handler for '{key.value}'")
                continue
            if inspect.isawaitable(result):
                self._schedule(key, result)

    def listener_count(self, event: ClientEvent | str) -> int:
        return len(self._handlers.get(ClientEvent(event), []))

    def clear(self) -> None:
        """Drop every subscription."""
        self._handlers.clear()

    def _schedule(self, key: ClientEvent, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop for async '{key.value}' handler; dropped")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_handler_done(key, t))

    def _on_handler_done(self, key: ClientEvent, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Error in async event handler for '{key.value}': {exc}")
