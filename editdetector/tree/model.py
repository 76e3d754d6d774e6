# editdetector/tree/model.py
from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union

# =============================================================================
# Host tree surface
# =============================================================================


class TraversalError(RuntimeError):
    """A node was detached from the tree while it was being walked."""


@dataclass(frozen=True)
class Rect:
    """On-screen rectangle reported by a geometry capability."""
    left: float
    top: float
    width: float
    height: float

    def to_dict(self) -> dict:
        return {"left": self.left, "top": self.top, "width": self.width, "height": self.height}


@dataclass(eq=False)
class TextLeaf:
    """
    Smallest text-bearing unit of an editable tree.

    Fields:
        text:     Live text content (mutable, like a DOM Text node's data)

    The parent link is a weak reference, so a leaf never keeps its
    container alive. Equality is object identity.
    """
    text: str = ""
    _parent: Optional[weakref.ref] = field(default=None, repr=False, compare=False)

    node_name = "#text"

    @property
    def parent(self) -> Optional["ElementNode"]:
        return self._parent() if self._parent is not None else None

    def __len__(self) -> int:
        return len(self.text)

    def detach(self) -> None:
        parent = self.parent
        if parent is not None:
            parent.remove(self)


Node = Union["ElementNode", TextLeaf]


@dataclass(eq=False)
class ElementNode:
    """
    Element container in an editable tree.

    Fields:
        tag:          Lower-case tag name ("p", "span", "div", ...)
        class_name:   Raw class attribute ("" when absent)
        children:     Child nodes (ordered), elements or text leaves
    """
    tag: str
    class_name: str = ""
    children: List[Node] = field(default_factory=list)
    _parent: Optional[weakref.ref] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        self.tag = self.tag.lower()
        adopted = list(self.children)
        self.children = []
        for child in adopted:
            self.append(child)

    # ---------------------------
    # Structure
    # ---------------------------
    @property
    def parent(self) -> Optional["ElementNode"]:
        return self._parent() if self._parent is not None else None

    @property
    def node_name(self) -> str:
        return self.tag.upper()

    def append(self, child: Node) -> Node:
        return self.insert(len(self.children), child)

    def insert(self, index: int, child: Node) -> Node:
        if child is self:
            raise ValueError("cannot insert a node into itself")
        old_parent = child.parent
        if old_parent is not None:
            old_parent.remove(child)
        child._parent = weakref.ref(self)
        self.children.insert(index, child)
        return child

    def remove(self, child: Node) -> None:
        for i, existing in enumerate(self.children):
            if existing is child:
                del self.children[i]
                child._parent = None
                return
        raise ValueError("node is not a child of this element")

    def detach(self) -> None:
        parent = self.parent
        if parent is not None:
            parent.remove(self)

    def same_tag_index(self) -> int:
        """Ordinal rank among same-tag siblings (0 when there is no parent)."""
        parent = self.parent
        if parent is None:
            return 0
        rank = 0
        for sibling in parent.children:
            if sibling is self:
                return rank
            if isinstance(sibling, ElementNode) and sibling.tag == self.tag:
                rank += 1
        return 0

    # ---------------------------
    # Reading
    # ---------------------------
    def iter_text_leaves(self) -> Iterator[TextLeaf]:
        """
        Depth-first, document-order walk over all text leaves.

        Raises TraversalError if a node is detached from its container
        while the walk is suspended on it.
        """
        for child in list(self.children):
            if child.parent is not self:
                raise TraversalError(f"{child!r} detached from <{self.tag}> during traversal")
            if isinstance(child, TextLeaf):
                yield child
            else:
                yield from child.iter_text_leaves()

    def text_content(self) -> str:
        return "".join(leaf.text for leaf in self.iter_text_leaves())

    def iter_elements(self) -> Iterator["ElementNode"]:
        """Descendant elements in document order (self excluded)."""
        for child in self.children:
            if isinstance(child, ElementNode):
                yield child
                yield from child.iter_elements()

    def find_all(self, tag: str) -> List["ElementNode"]:
        """All descendant elements with the given tag, in document order."""
        tag = tag.lower()
        found: List[ElementNode] = []
        for child in self.children:
            if isinstance(child, ElementNode):
                if child.tag == tag:
                    found.append(child)
                found.extend(child.find_all(tag))
        return found

