# editdetector/detection/cursor.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class CursorPosition:
    """Caret/selection position recorded from one event."""
    parent_id: str
    offset: int
    end_offset: int
    timestamp: float
    text_length: Optional[int] = None
    node_id: Optional[str] = None


@dataclass(frozen=True)
class PriorState:
    """
    Ambient cursor-tracking state fed into the classifier.
    The caller owns it and must refresh it after each classification.
    """
    last_commit: Optional[CursorPosition] = None
    last_intent: Optional[CursorPosition] = None


def cursor_from_event(event) -> Optional[CursorPosition]:
    if event is None:
        return None
    text = getattr(event, "container_text", None)
    return CursorPosition(
        parent_id=event.parent_id,
        offset=event.start_offset,
        end_offset=event.end_offset,
        timestamp=event.timestamp,
        text_length=len(text) if text is not None else None,
        node_id=event.node.id if event.node else None,
    )


def advance(prior: Optional[PriorState], pair) -> PriorState:
    """Cursor state after `pair` has been classified; sides that are missing keep their old value."""
    state = prior or PriorState()
    if pair.commit is not None:
        state = replace(state, last_commit=cursor_from_event(pair.commit))
    if pair.intent is not None:
        state = replace(state, last_intent=cursor_from_event(pair.intent))
    return state
