"""
editdetector - anomaly diagnostics for editable text surfaces.

Snapshots and diffs the tree of text leaves around a mutation, pairs
intent (beforeinput) and commit (input) events, and classifies each pair
against a fixed anomaly catalog into a canonical scenario id.
"""

from .config import Config
from .tree import (
    ElementNode,
    TextLeaf,
    IdentityRegistry,
    Snapshot,
    build_snapshot,
    DiffEntry,
    diff_snapshots,
    parse_fragment,
)
from .events import EventLog, EventPair, extract_pairs, parse_event
from .detection import AnomalyPredicate, DetectionResult, PriorState, ScenarioClassifier, encode, decode, describe
from .session import EditSession

__all__ = [
    "Config",
    "ElementNode",
    "TextLeaf",
    "IdentityRegistry",
    "Snapshot",
    "build_snapshot",
    "DiffEntry",
    "diff_snapshots",
    "parse_fragment",
    "EventLog",
    "EventPair",
    "extract_pairs",
    "parse_event",
    "AnomalyPredicate",
    "DetectionResult",
    "PriorState",
    "ScenarioClassifier",
    "encode",
    "decode",
    "describe",
    "EditSession",
]
