"""
Tree module - stable leaf identity, structural snapshots and snapshot diffing.

Reads a host tree of text leaves without mutating it, captures
point-in-time snapshots and classifies per-leaf changes between two of them.
"""

from .model import ElementNode, TextLeaf, Rect, TraversalError
from .markup import parse_fragment
from .identity import IdentityRegistry
from .snapshot import NodeDescriptor, Snapshot, build_snapshot
from .diff import DiffEntry, diff_snapshots, summarize

__all__ = [
    "ElementNode",
    "TextLeaf",
    "Rect",
    "TraversalError",
    "parse_fragment",
    "IdentityRegistry",
    "NodeDescriptor",
    "Snapshot",
    "build_snapshot",
    "DiffEntry",
    "diff_snapshots",
    "summarize",
]
