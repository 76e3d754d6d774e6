# editdetector/detection/scenario.py
from __future__ import annotations

from enum import Enum
from typing import Iterable, List

NORMAL_SCENARIO_ID = "0"
NORMAL_DESCRIPTION = "Normal input"


class AnomalyPredicate(Enum):
    """
    Anomaly catalog. The value is (rank, slug, label); the rank is the
    canonical sort key of scenario ids and never changes once published.
    """

    INPUT_TYPE_MISMATCH = (1, "input-type-mismatch", "InputType mismatch")
    PARENT_MISMATCH = (2, "parent-mismatch", "Parent mismatch")
    NODE_MISMATCH = (3, "node-mismatch", "Node mismatch")
    SELECTION_MISMATCH = (4, "selection-mismatch", "Selection mismatch")
    MISSING_BEFOREINPUT = (5, "missing-beforeinput", "Missing beforeinput")
    MISSING_INPUT = (6, "missing-input", "Missing input")
    BOUNDARY_INPUT = (7, "boundary-input", "Boundary input")
    FULL_SELECTION = (8, "full-selection", "Full selection")
    RANGE_INCONSISTENCY = (9, "range-inconsistency", "Range inconsistency")
    RANGE_DOM_MISMATCH = (10, "range-dom-mismatch", "Range-DOM mismatch")
    UNEXPECTED_SEQUENCE = (11, "unexpected-sequence", "Unexpected sequence")

    @property
    def rank(self) -> int:
        return self.value[0]

    @property
    def slug(self) -> str:
        return self.value[1]

    @property
    def label(self) -> str:
        return self.value[2]

    @classmethod
    def from_rank(cls, rank: int):
        return _BY_RANK.get(rank)

    @classmethod
    def from_slug(cls, slug: str):
        return _BY_SLUG.get(slug)


_BY_RANK = {p.rank: p for p in AnomalyPredicate}
_BY_SLUG = {p.slug: p for p in AnomalyPredicate}


def sort_by_rank(predicates: Iterable[AnomalyPredicate]) -> List[AnomalyPredicate]:
    """Distinct predicates in canonical (ascending rank) order."""
    return sorted(set(predicates), key=lambda p: p.rank)


def encode(predicates: Iterable[AnomalyPredicate]) -> str:
    """Canonical scenario id: '0' for none, else ascending ranks joined by '.'"""
    ordered = sort_by_rank(predicates)
    if not ordered:
        return NORMAL_SCENARIO_ID
    return ".".join(str(p.rank) for p in ordered)


def decode(scenario_id: str) -> List[AnomalyPredicate]:
    """
    Inverse of encode(). Unknown or malformed numerals are skipped so ids
    written by a newer catalog still decode.
    """
    if not scenario_id or scenario_id == NORMAL_SCENARIO_ID:
        return []
    predicates: List[AnomalyPredicate] = []
    for part in scenario_id.split("."):
        part = part.strip()
        # ASCII only: str.isdigit() also accepts digits int() rejects, such as "²"
        if not (part.isascii() and part.isdigit()):
            continue
        predicate = AnomalyPredicate.from_rank(int(part))
        if predicate is not None and predicate not in predicates:
            predicates.append(predicate)
    return predicates


def describe(scenario_id: str) -> str:
    """Human-readable scenario: predicate labels joined by ' + '."""
    predicates = decode(scenario_id)
    if not predicates:
        return NORMAL_DESCRIPTION
    return " + ".join(p.label for p in predicates)
