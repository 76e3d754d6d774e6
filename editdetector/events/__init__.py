"""
Events module - edit event records, the bounded event log and
intent/commit pairing.
"""

from .models import (
    NodeRef,
    RangeInfo,
    IntentEvent,
    CommitEvent,
    OtherEvent,
    parse_event,
    parse_events,
)
from .event_log import EventLog
from .pairing import EventPair, extract_pairs, make_pair

__all__ = [
    "NodeRef",
    "RangeInfo",
    "IntentEvent",
    "CommitEvent",
    "OtherEvent",
    "parse_event",
    "parse_events",
    "EventLog",
    "EventPair",
    "extract_pairs",
    "make_pair",
]
