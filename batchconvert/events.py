"""In-process event bus and the conversion progress listener."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable

from .models import ProgressEvent
from .state import FileQueue
from .utils import PROGRESS_EVENT

log = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], None]


class EventBus:
    """Synchronous publish/subscribe keyed by event name.

    Deliveries are serialized: a payload reaches every handler before the
    next ``emit`` starts.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._lock = threading.RLock()

    def listen(self, event: str, handler: Handler) -> Callable[[], None]:
        """Subscribe *handler* and return a callable that unsubscribes it."""
        with self._lock:
            self._handlers[event].append(handler)

        def unlisten() -> None:
            with self._lock:
                if handler in self._handlers[event]:
                    self._handlers[event].remove(handler)

        return unlisten

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        with self._lock:
            handlers = list(self._handlers.get(event, ()))
            for handler in handlers:
                try:
                    handler(payload)
                except Exception:
                    log.exception("Handler for %s failed", event)


def attach_progress_listener(bus: EventBus, queue: FileQueue) -> Callable[[], None]:
    """Merge ``conversion-progress`` payloads into *queue* by path."""

    def _on_progress(payload: dict[str, Any]) -> None:
        try:
            event = ProgressEvent.from_payload(payload)
        except ValueError as exc:
            log.warning("Ignoring malformed progress payload %r: %s", payload, exc)
            return
        queue.apply_event(event)

    return bus.listen(PROGRESS_EVENT, _on_progress)
