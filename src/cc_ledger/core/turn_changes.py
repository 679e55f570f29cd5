"""Turn segmentation and per-turn file change summaries.

A turn starts at a user-authored event and runs until just before the next
one. Each Edit / Write / NotebookEdit invocation inside the turn, including
nested sub-agent steps, becomes one FileChange record.

This is a separate view from core.file_access: it keeps every discrete
change (with its old/new strings or written content) instead of folding
touches into one ledger entry per path.

// [LAW:dataflow-not-control-flow] extract_turn_summaries() is a pure function: events in, summaries out.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from cc_ledger.core.access import AccessType, upgrade_access
from cc_ledger.event_types import Event, EventRole


# ─── Data model ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FileChange:
    file_path: str
    file_name: str
    change_type: AccessType  # MODIFIED or CREATED, never READ
    tool_name: str
    message_id: str
    timestamp: int
    old_string: str | None = None
    new_string: str | None = None
    # Full content for Write / NotebookEdit.
    content: str | None = None


@dataclass(frozen=True)
class TurnSummary:
    turn_index: int
    user_message_id: str
    # Index of the last event in this turn (positions the inline summary).
    end_message_index: int
    changes: tuple[FileChange, ...] = field(default_factory=tuple)
    # Deduplicated count of unique paths touched.
    file_count: int = 0
    modified_count: int = 0
    created_count: int = 0


@dataclass(frozen=True)
class _ChangeShape:
    path_field: str
    change_type: AccessType
    # (FileChange attribute, tool input key)
    body_fields: tuple[tuple[str, str], ...]


# [LAW:dataflow-not-control-flow] Tool → change extraction table
_CHANGE_TOOLS: dict[str, _ChangeShape] = {
    "Edit": _ChangeShape(
        path_field="file_path",
        change_type=AccessType.MODIFIED,
        body_fields=(("old_string", "old_string"), ("new_string", "new_string")),
    ),
    "Write": _ChangeShape(
        path_field="file_path",
        change_type=AccessType.CREATED,
        body_fields=(("content", "content"),),
    ),
    "NotebookEdit": _ChangeShape(
        path_field="notebook_path",
        change_type=AccessType.CREATED,
        body_fields=(("content", "new_source"),),
    ),
}


# ─── Helpers ─────────────────────────────────────────────────────────────────


def basename(file_path: str) -> str:
    return file_path.rsplit("/", 1)[-1] or file_path


def _text(v: object) -> str:
    """Stringify a JSON input value as the host app displays it: true, 1 (not True, 1.0)."""
    if v is None:
        return ""
    if isinstance(v, str):
        return v
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    if isinstance(v, (dict, list)):
        return json.dumps(v, ensure_ascii=False)
    return str(v)


def _build_change(
    tool_name: str | None,
    tool_input: Mapping[str, object] | None,
    message_id: str,
    timestamp: int,
) -> FileChange | None:
    if not tool_name or not tool_input:
        return None
    shape = _CHANGE_TOOLS.get(tool_name)
    if shape is None:
        return None
    file_path = _text(tool_input.get(shape.path_field))
    if not file_path:
        return None
    bodies = {attr: _text(tool_input.get(key)) for attr, key in shape.body_fields}
    return FileChange(
        file_path=file_path,
        file_name=basename(file_path),
        change_type=shape.change_type,
        tool_name=tool_name,
        message_id=message_id,
        timestamp=timestamp,
        **bodies,
    )


def extract_change(event: Event) -> FileChange | None:
    """File change made directly by a tool_call event, if it is a file-writing tool."""
    if event.tool_error:
        return None
    return _build_change(event.tool_name, event.tool_input, event.id, event.timestamp)


def extract_subagent_changes(event: Event) -> list[FileChange]:
    """File changes made by nested sub-agent steps, stamped with the parent's id/time."""
    changes = []
    for step in event.subagent_steps:
        if step.tool_error:
            continue
        change = _build_change(step.tool_name, step.tool_input, event.id, event.timestamp)
        if change is not None:
            changes.append(change)
    return changes


def _collect_changes_in_range(events: Sequence[Event], start: int, end: int) -> list[FileChange]:
    """Collect file changes from events in [start, end)."""
    changes: list[FileChange] = []
    for event in events[start:end]:
        if event.role is not EventRole.TOOL_CALL:
            continue
        change = extract_change(event)
        if change is not None:
            changes.append(change)
        changes.extend(extract_subagent_changes(event))
    return changes


def compute_stats(changes: Sequence[FileChange]) -> tuple[int, int, int]:
    """Return (file_count, modified_count, created_count), created beating modified per path."""
    type_by_file: dict[str, AccessType] = {}
    for change in changes:
        type_by_file[change.file_path] = upgrade_access(
            type_by_file.get(change.file_path), change.change_type
        )
    modified = sum(1 for t in type_by_file.values() if t is AccessType.MODIFIED)
    created = sum(1 for t in type_by_file.values() if t is AccessType.CREATED)
    return len(type_by_file), modified, created


def _make_summary(
    turn_index: int,
    user_message_id: str,
    end_message_index: int,
    changes: list[FileChange],
) -> TurnSummary:
    file_count, modified_count, created_count = compute_stats(changes)
    return TurnSummary(
        turn_index=turn_index,
        user_message_id=user_message_id,
        end_message_index=end_message_index,
        changes=tuple(changes),
        file_count=file_count,
        modified_count=modified_count,
        created_count=created_count,
    )


# ─── Public API ──────────────────────────────────────────────────────────────


def extract_turn_summaries(events: Sequence[Event], is_processing: bool) -> list[TurnSummary]:
    """Per-turn file change summaries.

    Turns without changes are dropped but still consume a turn index. The
    trailing turn is only summarized when no response is in flight
    (is_processing False), so a half-finished change set never shows.
    """
    summaries: list[TurnSummary] = []
    turn_index = 0
    turn_start = -1
    user_message_id = ""

    for i, event in enumerate(events):
        if event.role is not EventRole.USER:
            continue
        if turn_start >= 0:
            changes = _collect_changes_in_range(events, turn_start, i)
            if changes:
                summaries.append(_make_summary(turn_index, user_message_id, i - 1, changes))
            turn_index += 1
        turn_start = i
        user_message_id = event.id

    if turn_start >= 0 and not is_processing:
        changes = _collect_changes_in_range(events, turn_start, len(events))
        if changes:
            summaries.append(_make_summary(turn_index, user_message_id, len(events) - 1, changes))

    return summaries


def extract_all_file_changes(events: Sequence[Event]) -> list[FileChange]:
    """Flat list of every file change across the whole log, in log order."""
    return _collect_changes_in_range(events, 0, len(events))


def group_changes_by_file(changes: Sequence[FileChange]) -> dict[str, list[FileChange]]:
    """Group changes by path for the cumulative view (first-seen path order)."""
    grouped: dict[str, list[FileChange]] = {}
    for change in changes:
        grouped.setdefault(change.file_path, []).append(change)
    return grouped


def change_key(change: FileChange) -> str:
    """Stable selection key for one change in a UI list."""
    return "{}::{}".format(change.file_path, change.message_id)
