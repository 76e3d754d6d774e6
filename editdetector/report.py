"""
Plain-text diagnostic report.

Renders captured events, tree changes and detection results into a compact
text block suitable for bug reports or an LLM analysis prompt.
"""

from typing import List, Optional, Sequence

from .detection.classifier import DetectionResult
from .tree.diff import DiffEntry

PREVIEW_CHARS = 50


def _preview(text: Optional[str]) -> str:
    text = text or ""
    return text if len(text) <= PREVIEW_CHARS else text[:PREVIEW_CHARS] + "..."


def format_events(events: Sequence) -> str:
    if not events:
        return "(No event logs)"

    lines: List[str] = []
    for ev in events:
        lines.append(f"[{ev.sequence_name}] t={ev.timestamp:g}ms id={ev.id}")
        if ev.range is not None:
            if ev.range.collapsed:
                lines.append("  range: collapsed")
            else:
                lines.append(f"  range: start:{ev.range.start_offset}, end:{ev.range.end_offset}")
        if ev.discriminator:
            lines.append(f"  inputType: {ev.discriminator}")
        if ev.data is not None:
            lines.append(f"  data: {ev.data or '(empty)'}")
        if ev.parent is not None:
            lines.append(f"  parent: {ev.parent.node_name} ({ev.parent.id or '?'})")
        lines.append(f"  startOffset: {ev.start_offset}")
        lines.append(f"  endOffset: {ev.end_offset}")
        lines.append("")
    return "\n".join(lines).rstrip()


def format_diff(entries: Sequence[DiffEntry]) -> str:
    if not entries:
        return "(No changes)"

    lines = [f"Modified nodes: {len(entries)} node(s)"]
    for i, entry in enumerate(entries, 1):
        lines.append(f"  [{i}] Type: {entry.change_type} ({entry.identity})")
        if entry.before is not None:
            lines.append(f'    Before: "{_preview(entry.before.text)}" @ {entry.before.parent_signature}')
        if entry.after is not None:
            lines.append(f'    After: "{_preview(entry.after.text)}" @ {entry.after.parent_signature}')
        for rect in entry.regions:
            lines.append(f"    Region: ({rect.left}, {rect.top}), Size: {rect.width}x{rect.height}")
    return "\n".join(lines)


def format_detection(result: DetectionResult) -> str:
    if not result.is_abnormal:
        return "Status: normal"
    lines = [
        f"Scenario: {result.scenario_id} ({result.human_description})",
        f"Trigger: {result.trigger.label}",
        f"Detail: {result.detail}",
    ]
    return "\n".join(lines)


def build_report(events: Sequence, entries: Sequence[DiffEntry],
                 result: Optional[DetectionResult] = None) -> str:
    sections = [
        "## Detection",
        format_detection(result) if result is not None else "(Not classified)",
        "",
        "## Event Logs",
        format_events(events),
        "",
        "## Tree Changes",
        format_diff(entries),
    ]
    return "\n".join(sections) + "\n"
