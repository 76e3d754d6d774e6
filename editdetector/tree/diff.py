# editdetector/tree/diff.py
from __future__ import annotations

# -----------------------------------------------------------------------------
# Tree Diff Engine
#
# Inputs:
#   - two Snapshots of the same surface (before / after a mutation)
#   - (Optional) geometry capability: leaf -> on-screen rects
#
# Outputs:
#   - DiffEntry list: deleted / modified / moved in before-order,
#     then added in after-order
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..logging_utils import get_logger
from .model import Rect, TextLeaf
from .snapshot import NodeDescriptor, Snapshot

logger = get_logger(__name__)

Geometry = Callable[[TextLeaf], Iterable[Rect]]

DELETED = "deleted"
ADDED = "added"
MODIFIED = "modified"
MOVED = "moved"
CHANGE_TYPES = (DELETED, ADDED, MODIFIED, MOVED)


@dataclass(frozen=True)
class DiffEntry:
    before: Optional[NodeDescriptor]
    after: Optional[NodeDescriptor]
    change_type: str  # 'deleted' | 'added' | 'modified' | 'moved'
    regions: Tuple[Rect, ...] = ()

    @property
    def identity(self) -> str:
        side = self.before if self.before is not None else self.after
        return side.identity

    def to_dict(self) -> dict:
        return {
            "change_type": self.change_type,
            "before": self.before.to_dict() if self.before else None,
            "after": self.after.to_dict() if self.after else None,
            "regions": [r.to_dict() for r in self.regions],
        }


@dataclass(frozen=True)
class DiffSummary:
    counts: Dict[str, int]
    added_regions: Tuple[Rect, ...]

    @property
    def changed(self) -> bool:
        return any(self.counts.values())


def diff_snapshots(before: Snapshot, after: Snapshot,
                   geometry: Optional[Geometry] = None) -> List[DiffEntry]:
    """
    Classify every leaf that differs between two snapshots.

    Per identity in `before`:
      - missing from `after`        -> deleted
      - text differs                -> modified (checked before moved)
      - parent signature differs    -> moved
      - otherwise                   -> unchanged, omitted
    Per identity only in `after`    -> added (+ regions via geometry)
    """
    if before is None or after is None:
        raise ValueError("diff_snapshots() requires two snapshots")

    entries: List[DiffEntry] = []

    for identity, old in before.items():
        new = after.get(identity)
        if new is None:
            entries.append(DiffEntry(before=old, after=None, change_type=DELETED))
        elif old.text != new.text:
            entries.append(DiffEntry(before=old, after=new, change_type=MODIFIED))
        elif old.parent_signature != new.parent_signature:
            entries.append(DiffEntry(before=old, after=new, change_type=MOVED))

    for identity, new in after.items():
        if identity in before:
            continue
        regions = _regions_for(new, geometry) if geometry is not None else ()
        entries.append(DiffEntry(before=None, after=new, change_type=ADDED, regions=regions))

    return entries


def summarize(entries: List[DiffEntry]) -> DiffSummary:
    counts = {ct: 0 for ct in CHANGE_TYPES}
    regions: List[Rect] = []
    for entry in entries:
        counts[entry.change_type] += 1
        regions.extend(entry.regions)
    return DiffSummary(counts=counts, added_regions=tuple(regions))


def _regions_for(desc: NodeDescriptor, geometry: Geometry) -> Tuple[Rect, ...]:
    leaf = desc.leaf
    if leaf is None:
        return ()
    try:
        return tuple(geometry(leaf) or ())
    except Exception as e:
        # Regions are decoration only; the entry itself is kept.
        logger.warning(f"Geometry lookup failed for {desc.identity}: {e}")
        return ()
