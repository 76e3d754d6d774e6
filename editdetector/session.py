# editdetector/session.py
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from .config import Config
from .detection.classifier import DetectionResult, ScenarioClassifier
from .detection.cursor import PriorState, advance
from .events.models import NodeRef, chronological
from .events.pairing import EventPair, extract_pairs
from .logging_utils import get_logger, log_pipeline_step
from .tree.diff import DiffEntry, Geometry, diff_snapshots
from .tree.identity import IdentityRegistry
from .tree.model import ElementNode, TextLeaf
from .tree.snapshot import Snapshot, build_snapshot

logger = get_logger(__name__)


class EditSession:
    """
    Diagnostics for one editable surface.

    Pipeline:
      1. capture_before()  -> snapshot at intent time
      2. capture_after()   -> snapshot at commit time + diff against (1)
      3. analyze(events)   -> pairs, each classified with its own history
                              window and the cursor state left by the
                              previous pair
    """

    def __init__(self, root: ElementNode, config: Optional[Config] = None,
                 registry: Optional[IdentityRegistry] = None,
                 geometry: Optional[Geometry] = None):
        if root is None:
            raise ValueError("EditSession requires a root element")
        self.root = root
        self.config = config or Config()
        self.registry = registry or IdentityRegistry(self.config)
        self.geometry = geometry
        self.classifier = ScenarioClassifier(self.config)
        self.prior_state = PriorState()
        self._before: Optional[Snapshot] = None

    # ---------- Tree ----------

    def capture_before(self) -> Snapshot:
        self._before = build_snapshot(self.root, self.registry)
        return self._before

    def capture_after(self) -> List[DiffEntry]:
        """Snapshot the tree again and diff it against the last capture_before()."""
        if self._before is None:
            raise RuntimeError("capture_after() called before capture_before()")
        log_pipeline_step("diff", "started", {"before": len(self._before)})
        after = build_snapshot(self.root, self.registry)
        entries = diff_snapshots(self._before, after, self.geometry)
        status = "completed" if self._before.complete and after.complete else "degraded"
        log_pipeline_step("diff", status, {"after": len(after), "changes": len(entries)})
        self._before = None
        return entries

    # ---------- Events ----------

    def refs_for(self, leaf: TextLeaf) -> Dict[str, Optional[NodeRef]]:
        """`parent` / `node` event fields for an edit at `leaf`, from this session's registry."""
        return {"parent": self.registry.parent_ref(leaf), "node": self.registry.node_ref(leaf)}

    def analyze(self, events: Sequence) -> List[Tuple[EventPair, DetectionResult]]:
        """Pair and classify a captured event stream, refreshing cursor state per pair."""
        ordered = chronological(events)
        log_pipeline_step("classification", "started", {"events": len(ordered)})

        pairs = extract_pairs(ordered, self.config)
        results: List[Tuple[EventPair, DetectionResult]] = []
        abnormal = 0
        for pair in pairs:
            recent = _history_until(ordered, pair, self.config.sequence_window)
            result = self.classifier.classify(pair, self.prior_state, recent)
            self.prior_state = advance(self.prior_state, pair)
            if result.is_abnormal:
                abnormal += 1
                logger.info(f"Scenario {result.scenario_id} ({result.human_description}) at {pair.pair_key}")
            results.append((pair, result))

        log_pipeline_step("classification", "completed", {"pairs": len(pairs), "abnormal": abnormal})
        return results

    def reset(self) -> None:
        self.prior_state = PriorState()
        self._before = None
        self.registry.forget_subtree(self.root)


def _history_until(ordered: Sequence, pair: EventPair, window: int) -> list:
    """Events up to and including the pair's latest side, capped to `window`."""
    last = pair.commit if pair.commit is not None else pair.intent
    cut = 0
    for i, ev in enumerate(ordered):
        if ev is last:
            cut = i + 1
            break
    return list(ordered[max(0, cut - window):cut])
