# editdetector/detection/sequences.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..events.models import chronological


@dataclass(frozen=True)
class SequencePattern:
    name: str
    events: Tuple[str, ...]
    description: str

    def accepted_tails(self) -> List[Tuple[str, ...]]:
        """
        The full pattern plus its prefix up to the last commit ('input'),
        since a pair is classified when its commit lands, before any
        trailing compositionend arrives.
        """
        tails = [self.events]
        if "input" in self.events:
            cut = len(self.events) - self.events[::-1].index("input")
            if cut < len(self.events):
                tails.append(self.events[:cut])
        return tails


NORMAL_SEQUENCE_PATTERNS: Tuple[SequencePattern, ...] = (
    SequencePattern(
        name="simple-input",
        events=("beforeinput", "input"),
        description="Simple input without composition",
    ),
    SequencePattern(
        name="input-with-selection",
        events=("selectionchange", "beforeinput", "input"),
        description="Input after selection change",
    ),
    SequencePattern(
        name="ime-composition",
        events=("compositionstart", "compositionupdate", "beforeinput", "input", "compositionend"),
        description="IME composition input",
    ),
    SequencePattern(
        name="ime-with-selection",
        events=("selectionchange", "compositionstart", "compositionupdate", "beforeinput", "input",
                "compositionend"),
        description="IME composition with selection change",
    ),
)


def sequence_names(events: Sequence, window: int) -> List[str]:
    """
    Event names of the last `window` events in time order, with consecutive
    repeats collapsed (a burst of selectionchange counts once).
    """
    recent = chronological(events)[-window:]
    names: List[str] = []
    for ev in recent:
        name = ev.sequence_name
        if not names or names[-1] != name:
            names.append(name)
    return names


def match_pattern(names: Sequence[str],
                  patterns: Sequence[SequencePattern] = NORMAL_SEQUENCE_PATTERNS):
    """Return the first known-good pattern the sequence ends with, or None."""
    names = tuple(names)
    for pattern in patterns:
        for tail in pattern.accepted_tails():
            if len(tail) <= len(names) and names[len(names) - len(tail):] == tail:
                return pattern
    return None


def is_unexpected(events: Sequence, window: int,
                  patterns: Sequence[SequencePattern] = NORMAL_SEQUENCE_PATTERNS) -> bool:
    if not events:
        return False
    return match_pattern(sequence_names(events, window), patterns) is None
