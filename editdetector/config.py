"""
Configuration management for the edit anomaly detector.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional


@dataclass
class Config:
    """Main configuration class for the edit anomaly detector."""

    # Event pairing
    pair_window_ms: float = 200.0

    # Classification thresholds
    cursor_jump_threshold: int = 10
    offset_tolerance: int = 5
    range_tolerance: int = 5
    sequence_window: int = 10

    # Event log
    max_events: int = 20

    # Identity registry
    identity_prefix: str = "text_"
    element_prefix: str = "cev-"

    # Containers treated as inline when checking boundary input
    inline_tags: Optional[FrozenSet[str]] = None

    # General settings
    debug: bool = False

    def __post_init__(self):
        if self.inline_tags is None:
            self.inline_tags = frozenset({
                "a", "abbr", "b", "bdo", "cite", "code", "dfn", "em", "i", "kbd",
                "mark", "q", "s", "samp", "small", "span", "strong", "sub", "sup",
                "time", "u", "var",
            })
        if self.pair_window_ms <= 0:
            raise ValueError("pair_window_ms must be positive")
        if self.sequence_window < 1:
            raise ValueError("sequence_window must be >= 1")
        if self.max_events < 0:
            raise ValueError("max_events must be >= 0 (0 = unbounded)")
