# editdetector/tree/identity.py
from __future__ import annotations

import weakref
from typing import Optional

from ..config import Config
from ..events.models import NodeRef
from ..logging_utils import get_logger
from .model import ElementNode, TextLeaf

logger = get_logger(__name__)


class IdentityRegistry:
    """
    Out-of-band identity table for text leaves and their elements.

    - Identities are stored in a WeakKeyDictionary, so the registry never
      extends a node's lifetime and entries vanish with their node.
    - The tree is never touched: no attribute is written on the node.
    - Leaves and elements draw from separate counters and prefixes
      ("text_3", "cev-3"); both counters belong to the registry, so two
      editable surfaces with their own registries never share ids.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self._ids: "weakref.WeakKeyDictionary[object, str]" = weakref.WeakKeyDictionary()
        self._next_id = 1
        self._next_element_id = 1

    def identity_of(self, node: TextLeaf) -> str:
        """Return the leaf's identity, assigning a fresh one on first observation."""
        if node is None:
            raise TypeError("identity_of() requires a node, got None")
        if isinstance(node, ElementNode):
            return self.element_id(node)
        existing = self._ids.get(node)
        if existing is not None:
            return existing
        ident = f"{self.config.identity_prefix}{self._next_id}"
        self._next_id += 1
        self._ids[node] = ident
        return ident

    def element_id(self, element: ElementNode) -> str:
        """Return the element's identity, assigning a fresh one on first observation."""
        if not isinstance(element, ElementNode):
            raise TypeError(f"element_id() requires an element, got {type(element).__name__}")
        existing = self._ids.get(element)
        if existing is not None:
            return existing
        ident = f"{self.config.element_prefix}{self._next_element_id}"
        self._next_element_id += 1
        self._ids[element] = ident
        return ident

    def ensure_subtree_ids(self, root: ElementNode) -> int:
        """Assign identities to root and every element below it; returns how many were new."""
        before = self._next_element_id
        for element in [root, *root.iter_elements()]:
            self.element_id(element)
        return self._next_element_id - before

    def node_ref(self, node) -> NodeRef:
        """
        Event-side reference to a live node, using this registry's identities.

        Leaves report "#text" and their parent's class; elements report
        their upper-case tag and own class.
        """
        if node is None:
            raise TypeError("node_ref() requires a node, got None")
        if isinstance(node, ElementNode):
            return NodeRef(node_name=node.node_name, id=self.element_id(node),
                           class_name=node.class_name or None)
        parent = node.parent
        return NodeRef(node_name=node.node_name, id=self.identity_of(node),
                       class_name=(parent.class_name or None) if parent is not None else None)

    def parent_ref(self, leaf: TextLeaf) -> Optional[NodeRef]:
        """Reference to the element containing `leaf`, or None for a detached leaf."""
        if leaf is None:
            raise TypeError("parent_ref() requires a node, got None")
        parent = leaf.parent
        return self.node_ref(parent) if parent is not None else None

    def known(self, node) -> bool:
        return node in self._ids

    def forget_subtree(self, root) -> int:
        """
        Purge the identities of every leaf under root (or root itself if it is a leaf).
        Element identities under root are purged too but not counted.
        Returns the number of leaf entries removed.
        """
        if root is None:
            raise TypeError("forget_subtree() requires a node, got None")
        if isinstance(root, TextLeaf):
            leaves = [root]
        else:
            leaves = list(root.iter_text_leaves())
            for element in [root, *root.iter_elements()]:
                self._ids.pop(element, None)
        removed = 0
        for leaf in leaves:
            if self._ids.pop(leaf, None) is not None:
                removed += 1
        if removed:
            logger.debug(f"Purged {removed} identities under {_describe(root)}")
        return removed

    def __len__(self) -> int:
        return len(self._ids)


def _describe(node) -> str:
    if isinstance(node, ElementNode):
        return f"<{node.tag}>"
    return "#text"
