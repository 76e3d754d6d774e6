# editdetector/events/pairing.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..config import Config
from ..logging_utils import get_logger
from .models import CommitEvent, IntentEvent

logger = get_logger(__name__)


@dataclass(frozen=True)
class EventPair:
    """
    One intent/commit correlation.

    Fields:
        intent:           beforeinput side (None if missing)
        commit:           input side (None if missing)
        pair_key:         stable key from both timestamps, discriminators and data
        kind_mismatch:    both sides present and their discriminators differ
        timestamp_delta:  commit.timestamp - intent.timestamp, or -1 if unpaired
    """
    intent: Optional[IntentEvent]
    commit: Optional[CommitEvent]
    pair_key: str
    kind_mismatch: bool
    timestamp_delta: float

    @property
    def complete(self) -> bool:
        return self.intent is not None and self.commit is not None

    @property
    def anchor(self):
        """The side that places this pair on the timeline (intent first)."""
        return self.intent if self.intent is not None else self.commit

    def to_dict(self) -> dict:
        return {
            "pair_key": self.pair_key,
            "intent": self.intent.to_dict() if self.intent else None,
            "commit": self.commit.to_dict() if self.commit else None,
            "kind_mismatch": self.kind_mismatch,
            "timestamp_delta": self.timestamp_delta,
        }


def make_pair_key(intent: Optional[IntentEvent], commit: Optional[CommitEvent]) -> str:
    if intent is None and commit is None:
        return ""
    parts = [
        _fmt_ts(intent.timestamp) if intent else "0",
        _fmt_ts(commit.timestamp) if commit else "0",
        intent.discriminator if intent else "",
        commit.discriminator if commit else "",
        (intent.data or "") if intent else "",
        (commit.data or "") if commit else "",
    ]
    return "_".join(parts)


def make_pair(intent: Optional[IntentEvent], commit: Optional[CommitEvent]) -> EventPair:
    if intent is None and commit is None:
        raise ValueError("an event pair needs at least one side")
    complete = intent is not None and commit is not None
    return EventPair(
        intent=intent,
        commit=commit,
        pair_key=make_pair_key(intent, commit),
        kind_mismatch=complete and intent.discriminator != commit.discriminator,
        timestamp_delta=(commit.timestamp - intent.timestamp) if complete else -1,
    )


def extract_pairs(events: List, config: Optional[Config] = None) -> List[EventPair]:
    """
    Pair intent and commit events 1:1 under a time window.

    Pass 1: every intent takes the nearest unclaimed commit after it with
            0 <= delta < window; the scan stops once events fall outside the window.
    Pass 2: every commit still unclaimed takes the nearest unclaimed intent
            before it under the same window.
    Leftovers on either side become half pairs (timestamp_delta = -1).
    Other event kinds are skipped. Pairs come back in timeline order.

    `events` must be sorted chronologically.
    """
    if events is None:
        raise ValueError("extract_pairs() requires an event list")
    window = (config or Config()).pair_window_ms

    # position -> partner position
    intent_match: Dict[int, int] = {}
    commit_match: Dict[int, int] = {}

    for i, ev in enumerate(events):
        if not isinstance(ev, IntentEvent):
            continue
        best, best_delta = None, None
        for j in range(i + 1, len(events)):
            cand = events[j]
            delta = cand.timestamp - ev.timestamp
            if delta > window:
                break
            if not isinstance(cand, CommitEvent) or j in commit_match:
                continue
            if 0 <= delta < window and (best_delta is None or delta < best_delta):
                best, best_delta = j, delta
        if best is not None:
            intent_match[i] = best
            commit_match[best] = i

    for j, ev in enumerate(events):
        if not isinstance(ev, CommitEvent) or j in commit_match:
            continue
        best, best_delta = None, None
        for i in range(j - 1, -1, -1):
            cand = events[i]
            delta = ev.timestamp - cand.timestamp
            if delta > window:
                break
            if not isinstance(cand, IntentEvent) or i in intent_match:
                continue
            if 0 <= delta < window and (best_delta is None or delta < best_delta):
                best, best_delta = i, delta
        if best is not None:
            intent_match[best] = j
            commit_match[j] = best

    pairs: List[EventPair] = []
    for pos, ev in enumerate(events):
        if isinstance(ev, IntentEvent):
            partner = intent_match.get(pos)
            pairs.append(make_pair(ev, events[partner] if partner is not None else None))
        elif isinstance(ev, CommitEvent) and pos not in commit_match:
            pairs.append(make_pair(None, ev))

    unpaired = sum(1 for p in pairs if not p.complete)
    if unpaired:
        logger.debug(f"Extracted {len(pairs)} pairs, {unpaired} with a missing side")
    return pairs


def _fmt_ts(ts: float) -> str:
    return str(int(ts)) if float(ts).is_integer() else repr(ts)
