"""
Detection module - anomaly catalog, scenario ids and pair classification.
"""

from .scenario import AnomalyPredicate, encode, decode, describe
from .cursor import CursorPosition, PriorState, advance, cursor_from_event
from .classifier import DetectionResult, ScenarioClassifier

__all__ = [
    "AnomalyPredicate",
    "encode",
    "decode",
    "describe",
    "CursorPosition",
    "PriorState",
    "advance",
    "cursor_from_event",
    "DetectionResult",
    "ScenarioClassifier",
]
