"""Thread-safe event bus connecting background work to frontends."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

LOGGER = logging.getLogger(__name__)

PARSE_PROGRESS = "parse_progress"
SEARCH_BATCH = "search_batch"
SEARCH_DONE = "search_done"

Listener = Callable[[Dict[str, Any]], None]


@dataclass(slots=True)
class Event:
    name: str
    payload: Dict[str, Any]


class Subscription:
    """Queue of events for one consumer, e.g. an SSE connection."""

    def __init__(self, bus: "EventBus", names: Optional[Iterable[str]] = None) -> None:
        self._bus = bus
        self._queue: "queue.Queue[Event]" = queue.Queue()
        self.names = frozenset(names) if names is not None else None

    def deliver(self, event: Event) -> None:
        if self.names is None or event.name in self.names:
            self._queue.put(event)

    def get(self, timeout: float | None = None) -> Event | None:
        """Next event, or None if nothing arrived within ``timeout`` seconds."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[Event]:
        events: List[Event] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def close(self) -> None:
        self._bus.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class EventBus:
    """Fan-out of named events to queue subscribers and callback listeners.

    Listeners run synchronously on the emitting thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: List[Subscription] = []
        self._listeners: Dict[str, List[Listener]] = {}

    def subscribe(self, names: Optional[Iterable[str]] = None) -> Subscription:
        subscription = Subscription(self, names)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def add_listener(self, name: str, listener: Listener) -> None:
        with self._lock:
            self._listeners.setdefault(name, []).append(listener)

    def remove_listener(self, name: str, listener: Listener) -> None:
        with self._lock:
            listeners = self._listeners.get(name, [])
            if listener in listeners:
                listeners.remove(listener)

    def emit(self, name: str, payload: Dict[str, Any]) -> None:
        event = Event(name, payload)
        with self._lock:
            subscriptions = list(self._subscriptions)
            listeners = list(self._listeners.get(name, ()))

        for subscription in subscriptions:
            subscription.deliver(event)
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                LOGGER.exception("Listener for %s failed", name)
