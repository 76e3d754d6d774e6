"""
Edit event Pydantic models.

Defines the immutable records captured from an editable surface: intent
(beforeinput) events, commit (input) events and the surrounding selection
and composition events, as a tagged union over `kind`.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class NodeRef(BaseModel):
    """Reference to a node of the editable tree as seen at capture time."""

    model_config = ConfigDict(frozen=True)

    node_name: str = Field(..., description="nodeName, e.g. '#text', 'SPAN', 'P'")
    id: Optional[str] = Field(None, description="Registry identity of the node, if resolvable")
    class_name: Optional[str] = Field(None, description="Class attribute of the node or its parent")

    @property
    def tag(self) -> str:
        return self.node_name.lower()


class RangeInfo(BaseModel):
    """Selection range attached to an event."""

    model_config = ConfigDict(frozen=True)

    start_offset: int = Field(..., ge=0)
    end_offset: int = Field(..., ge=0)
    collapsed: bool = Field(True, description="True for a caret, False for a range selection")


class _EventBase(BaseModel):
    """Fields shared by every edit event; each concrete event names itself through `sequence_name`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int = Field(..., ge=0, description="Log-assigned event id")
    timestamp: float = Field(..., ge=0, description="Milliseconds on the shared monotonic clock")
    discriminator: Optional[str] = Field(None, description="inputType of the edit")
    data: Optional[str] = Field(None, description="Inserted data, if any")
    parent: Optional[NodeRef] = None
    node: Optional[NodeRef] = None
    start_offset: int = Field(0, ge=0)
    end_offset: int = Field(0, ge=0)
    range: Optional[RangeInfo] = None

    @property
    def parent_id(self) -> str:
        return (self.parent.id or "") if self.parent else ""

    @property
    def node_name(self) -> str:
        return self.node.node_name if self.node else ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with proper JSON serialization."""
        return self.model_dump(mode="json", exclude_none=True)


class IntentEvent(_EventBase):
    """Pre-mutation notification (beforeinput)."""

    kind: Literal["intent"] = "intent"
    discriminator: str = Field(..., min_length=1)

    @property
    def sequence_name(self) -> str:
        return "beforeinput"


class CommitEvent(_EventBase):
    """Post-mutation notification (input), fired after the tree changed."""

    kind: Literal["commit"] = "commit"
    discriminator: str = Field(..., min_length=1)
    container_text: str = Field(..., description="Live text of the leaf at commit time")

    @property
    def sequence_name(self) -> str:
        return "input"


OtherEventType = Literal["selectionchange", "compositionstart", "compositionupdate", "compositionend"]


class OtherEvent(_EventBase):
    """Selection or composition event; kept for sequence analysis, never paired."""

    kind: Literal["other"] = "other"
    event_type: OtherEventType

    @property
    def sequence_name(self) -> str:
        return self.event_type


EditEvent = Annotated[Union[IntentEvent, CommitEvent, OtherEvent], Field(discriminator="kind")]

_EVENT_ADAPTER = TypeAdapter(EditEvent)
_EVENT_LIST_ADAPTER = TypeAdapter(List[EditEvent])


def parse_event(raw: Dict[str, Any]) -> Union[IntentEvent, CommitEvent, OtherEvent]:
    """Validate a raw event dict into the matching event model."""
    return _EVENT_ADAPTER.validate_python(raw)


def parse_events(raw: List[Dict[str, Any]]) -> List[Union[IntentEvent, CommitEvent, OtherEvent]]:
    """Validate a list of raw event dicts and sort them chronologically."""
    return chronological(_EVENT_LIST_ADAPTER.validate_python(raw))


def chronological(events) -> list:
    """Stable chronological ordering used across the pipeline."""
    return sorted(events, key=lambda e: (e.timestamp, e.id))
