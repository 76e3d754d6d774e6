"""
Scenario classifier for intent/commit event pairs.

Evaluates every predicate of the anomaly catalog against one correlated
pair (plus optional prior cursor state and recent history), collects all
that fire, and condenses them into a canonical scenario id.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..config import Config
from ..events.pairing import EventPair
from ..logging_utils import get_logger
from .cursor import PriorState
from .scenario import NORMAL_DESCRIPTION, AnomalyPredicate, describe, encode
from .sequences import is_unexpected

logger = get_logger(__name__)


class DetectionResult(BaseModel):
    """Outcome of classifying one event pair."""

    model_config = ConfigDict(frozen=True)

    is_abnormal: bool
    trigger: Optional[AnomalyPredicate] = Field(None, description="Lowest-rank triggered predicate")
    triggered_predicates: Tuple[AnomalyPredicate, ...] = Field(
        default=(), description="All triggered predicates in rank order"
    )
    detail: str = NORMAL_DESCRIPTION
    scenario_id: Optional[str] = None
    human_description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_abnormal": self.is_abnormal,
            "trigger": self.trigger.slug if self.trigger else None,
            "triggered_predicates": [p.slug for p in self.triggered_predicates],
            "detail": self.detail,
            "scenario_id": self.scenario_id,
            "human_description": self.human_description,
        }


@dataclass(frozen=True)
class _Context:
    pair: EventPair
    prior: Optional[PriorState]
    recent: Sequence
    config: Config


Check = Callable[[_Context], bool]


# ----------------------------- Predicates -------------------------------------


def _input_type_mismatch(ctx: _Context) -> bool:
    return ctx.pair.kind_mismatch


def _parent_mismatch(ctx: _Context) -> bool:
    intent, commit = ctx.pair.intent, ctx.pair.commit
    if intent is None or commit is None:
        return False
    a, b = intent.parent_id, commit.parent_id
    return bool(a) and bool(b) and a != b


def _node_mismatch(ctx: _Context) -> bool:
    intent, commit = ctx.pair.intent, ctx.pair.commit
    if intent is None or commit is None:
        return False
    a, b = intent.node_name, commit.node_name
    return bool(a) and bool(b) and a != b


def _selection_mismatch(ctx: _Context) -> bool:
    commit = ctx.pair.commit
    last = ctx.prior.last_commit if ctx.prior else None
    if commit is None or last is None:
        return False
    if last.parent_id != commit.parent_id:
        return False
    return abs(commit.start_offset - last.offset) > ctx.config.cursor_jump_threshold


def _missing_beforeinput(ctx: _Context) -> bool:
    return ctx.pair.intent is None and ctx.pair.commit is not None


def _missing_input(ctx: _Context) -> bool:
    return ctx.pair.intent is not None and ctx.pair.commit is None


def _boundary_input(ctx: _Context) -> bool:
    event = ctx.pair.anchor
    if event is None or event.parent is None:
        return False
    if event.parent.tag not in ctx.config.inline_tags:
        return False
    offset = event.start_offset
    text = getattr(event, "container_text", None)
    if offset == 0:
        return True
    return text is not None and offset == len(text)


def _full_selection(ctx: _Context) -> bool:
    intent = ctx.pair.intent
    return intent is not None and intent.range is not None and not intent.range.collapsed


def _range_inconsistency(ctx: _Context) -> bool:
    intent, commit = ctx.pair.intent, ctx.pair.commit
    if intent is None or commit is None or intent.range is None or commit.range is None:
        return False
    expected = intent.range.start_offset + len(intent.data or "")
    return abs(commit.range.start_offset - expected) > ctx.config.offset_tolerance


def _range_dom_mismatch(ctx: _Context) -> bool:
    commit = ctx.pair.commit
    if commit is None or commit.range is None:
        return False
    return commit.range.start_offset > len(commit.container_text) + ctx.config.range_tolerance


def _unexpected_sequence(ctx: _Context) -> bool:
    if not ctx.recent:
        return False
    return is_unexpected(ctx.recent, ctx.config.sequence_window)


# Catalog as data, in rank order.
PREDICATE_CATALOG: Tuple[Tuple[AnomalyPredicate, Check], ...] = (
    (AnomalyPredicate.INPUT_TYPE_MISMATCH, _input_type_mismatch),
    (AnomalyPredicate.PARENT_MISMATCH, _parent_mismatch),
    (AnomalyPredicate.NODE_MISMATCH, _node_mismatch),
    (AnomalyPredicate.SELECTION_MISMATCH, _selection_mismatch),
    (AnomalyPredicate.MISSING_BEFOREINPUT, _missing_beforeinput),
    (AnomalyPredicate.MISSING_INPUT, _missing_input),
    (AnomalyPredicate.BOUNDARY_INPUT, _boundary_input),
    (AnomalyPredicate.FULL_SELECTION, _full_selection),
    (AnomalyPredicate.RANGE_INCONSISTENCY, _range_inconsistency),
    (AnomalyPredicate.RANGE_DOM_MISMATCH, _range_dom_mismatch),
    (AnomalyPredicate.UNEXPECTED_SEQUENCE, _unexpected_sequence),
)

_CHECKS: Dict[AnomalyPredicate, Check] = dict(PREDICATE_CATALOG)


# ----------------------------- Classifier -------------------------------------


class ScenarioClassifier:
    """Classifies event pairs against the anomaly catalog."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.logger = logger

    def classify(self, pair: EventPair, prior_state: Optional[PriorState] = None,
                 recent_events: Optional[Sequence] = None) -> DetectionResult:
        """
        Evaluate all predicates (no short-circuit) and build the result.

        Args:
            pair:           Intent/commit pair to classify
            prior_state:    Cursor state before this pair (caller-owned, not mutated)
            recent_events:  Recent chronological events for sequence analysis

        Returns:
            DetectionResult; scenario_id/human_description only set when abnormal
        """
        if pair is None:
            raise ValueError("classify() requires an event pair")

        ctx = _Context(pair=pair, prior=prior_state, recent=recent_events or (), config=self.config)
        triggered: List[AnomalyPredicate] = [
            predicate for predicate, check in PREDICATE_CATALOG if self._evaluate(predicate, check, ctx)
        ]

        if not triggered:
            return DetectionResult(is_abnormal=False)

        scenario_id = encode(triggered)
        return DetectionResult(
            is_abnormal=True,
            trigger=min(triggered, key=lambda p: p.rank),
            triggered_predicates=tuple(triggered),
            detail="Detected conditions: " + ", ".join(p.slug for p in triggered),
            scenario_id=scenario_id,
            human_description=describe(scenario_id),
        )

    def check(self, predicate: AnomalyPredicate, pair: EventPair,
              prior_state: Optional[PriorState] = None,
              recent_events: Optional[Sequence] = None) -> bool:
        """Evaluate a single predicate of the catalog."""
        ctx = _Context(pair=pair, prior=prior_state, recent=recent_events or (), config=self.config)
        return self._evaluate(predicate, _CHECKS[predicate], ctx)

    def _evaluate(self, predicate: AnomalyPredicate, check: Check, ctx: _Context) -> bool:
        try:
            return bool(check(ctx))
        except Exception as e:
            # A failing predicate counts as not fired; the rest still run.
            self.logger.warning(f"Predicate {predicate.slug} failed on {ctx.pair.pair_key}: {e}")
            return False
