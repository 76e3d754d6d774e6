# editdetector/tree/snapshot.py
from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from ..logging_utils import get_logger
from .identity import IdentityRegistry
from .model import ElementNode, TextLeaf, TraversalError

logger = get_logger(__name__)

# =============================================================================
# Snapshot data model
# =============================================================================


@dataclass(frozen=True)
class NodeDescriptor:
    """
    Point-in-time description of one text leaf.

    Fields:
        identity:          Registry identity of the leaf
        text:              Text content at snapshot time
        parent_signature:  "tag[nth].class" of the parent element
        offset:            Summed length of preceding text siblings in the parent
    """
    identity: str
    text: str
    parent_signature: str
    offset: int
    leaf_ref: Optional[weakref.ref] = field(default=None, repr=False, compare=False)

    @property
    def leaf(self) -> Optional[TextLeaf]:
        """The live leaf, or None once it has been garbage collected."""
        return self.leaf_ref() if self.leaf_ref is not None else None

    def to_dict(self) -> dict:
        return {
            "id": self.identity,
            "text": self.text,
            "parent_signature": self.parent_signature,
            "offset": self.offset,
        }


class Snapshot(Mapping):
    """
    Immutable identity -> NodeDescriptor mapping, in document order.
    """

    def __init__(self, entries: Dict[str, NodeDescriptor], complete: bool = True):
        self._entries = MappingProxyType(dict(entries))
        self.complete = complete

    def __getitem__(self, identity: str) -> NodeDescriptor:
        return self._entries[identity]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        state = "" if self.complete else ", partial"
        return f"Snapshot({len(self)} leaves{state})"

    def to_dict(self) -> dict:
        return {ident: desc.to_dict() for ident, desc in self._entries.items()}


# =============================================================================
# Builder
# =============================================================================


def parent_signature(parent: ElementNode) -> str:
    """Structural fingerprint of a leaf's parent: tag[nth-of-tag].className"""
    return f"{parent.tag}[{parent.same_tag_index()}].{parent.class_name or ''}"


def build_snapshot(root: ElementNode, registry: IdentityRegistry) -> Snapshot:
    """
    Walk every text leaf under root once, in document order.

    - Leaves without a parent element are skipped.
    - If the walk fails part way (a node detaches), the entries collected
      so far are returned and the snapshot is marked partial.
    - The tree is only read, never written.
    """
    if root is None:
        raise ValueError("build_snapshot() requires a root element, got None")
    if not hasattr(root, "iter_text_leaves"):
        raise TypeError(f"build_snapshot() requires an element root, got {type(root).__name__}")

    entries: Dict[str, NodeDescriptor] = {}
    complete = True
    try:
        for leaf in root.iter_text_leaves():
            parent = leaf.parent
            if parent is None:
                continue
            identity = registry.identity_of(leaf)
            entries[identity] = NodeDescriptor(
                identity=identity,
                text=leaf.text,
                parent_signature=parent_signature(parent),
                offset=_offset_within_parent(leaf, parent),
                leaf_ref=weakref.ref(leaf),
            )
    except TraversalError as e:
        complete = False
        logger.warning(f"Snapshot traversal failed after {len(entries)} leaves: {e}")

    return Snapshot(entries, complete=complete)


def _offset_within_parent(leaf: TextLeaf, parent: ElementNode) -> int:
    offset = 0
    for sibling in parent.children:
        if sibling is leaf:
            break
        if isinstance(sibling, TextLeaf):
            offset += len(sibling.text)
    return offset
