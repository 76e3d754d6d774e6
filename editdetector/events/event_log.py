# editdetector/events/event_log.py
from __future__ import annotations

from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional

from ..config import Config
from ..logging_utils import get_logger
from .models import CommitEvent, IntentEvent, OtherEvent, parse_event

logger = get_logger(__name__)

Listener = Callable[[Any], None]

# Raw host event names -> union kind
_KIND_BY_EVENT_TYPE = {
    "beforeinput": "intent",
    "input": "commit",
    "selectionchange": "other",
    "compositionstart": "other",
    "compositionupdate": "other",
    "compositionend": "other",
}


class EventLog:
    """
    Bounded FIFO of captured edit events.

    - Owns its own id counter (ids are never shared between logs).
    - Events are validated on entry and never mutated afterwards.
    - Oldest events are dropped once max_events is exceeded (0 = unbounded).
    """

    def __init__(self, max_events: Optional[int] = None, config: Optional[Config] = None):
        self.config = config or Config()
        limit = self.config.max_events if max_events is None else max_events
        if limit < 0:
            raise ValueError("max_events must be >= 0 (0 = unbounded)")
        self.max_events = limit
        self._events: Deque = deque(maxlen=limit or None)
        self._listeners: List[Listener] = []
        self._next_id = 1

    def record(self, event_type: str, timestamp: float, **fields: Any):
        """
        Validate and append one event.

        Args:
            event_type: Host event name ('beforeinput', 'input', 'selectionchange', ...)
            timestamp:  Milliseconds on the shared clock
            **fields:   Remaining event fields (discriminator, data, parent, node, ...)

        Returns:
            The frozen IntentEvent / CommitEvent / OtherEvent
        """
        kind = _KIND_BY_EVENT_TYPE.get(event_type)
        if kind is None:
            raise ValueError(f"Unsupported event type: {event_type}")

        raw: Dict[str, Any] = dict(fields, id=self._next_id, timestamp=timestamp, kind=kind)
        if kind == "other":
            raw["event_type"] = event_type
        event = parse_event(raw)
        self._next_id += 1

        self._events.append(event)
        self._emit(event)
        return event

    def append(self, event) -> None:
        """Append an already-built event (ids are the caller's responsibility)."""
        if not isinstance(event, (IntentEvent, CommitEvent, OtherEvent)):
            raise TypeError(f"Not an edit event: {type(event).__name__}")
        self._events.append(event)
        self._emit(event)

    def on_event(self, callback: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def events(self) -> list:
        return list(self._events)

    def recent(self, count: int) -> list:
        if count <= 0:
            return []
        return list(self._events)[-count:]

    def clear(self) -> None:
        self._events.clear()

    def serialized(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]

    def __len__(self) -> int:
        return len(self._events)

    def _emit(self, event) -> None:
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event listener {callback!r} failed: {e}")
