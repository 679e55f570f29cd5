"""Resolve the literal before/after body of an edit invocation.

Different agent engines report the same edit in different places: a
structured patch list on the result, a raw unified diff in the result
content, plain old/new strings on the result, or only the request input.
The request input can be a lossy representation, so result-side sources
win.
"""

from __future__ import annotations

from dataclasses import dataclass

from cc_ledger.core.access import AccessType
from cc_ledger.core.file_access import extract_file_path
from cc_ledger.core.turn_changes import FileChange
from cc_ledger.core.unified_diff import ParsedUnifiedDiff, parse_unified_diff_from_unknown
from cc_ledger.event_types import Event, JsonDict


@dataclass(frozen=True)
class EditBody:
    file_path: str
    old_string: str | None
    new_string: str | None
    # Unparsed diff text to fall back on when no old/new pair resolves.
    raw_diff: str | None = None

    @property
    def has_strings(self) -> bool:
        return bool(self.old_string) or bool(self.new_string)


def _str_or_none(v: object) -> str | None:
    return v if isinstance(v, str) else None


def _first_defined(*candidates: str | None) -> str | None:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _matching_patch(patches: tuple[JsonDict, ...], wanted_path: str) -> JsonDict | None:
    for entry in patches:
        entry_path = entry.get("filePath", entry.get("path"))
        if isinstance(entry_path, str) and entry_path and entry_path == wanted_path:
            return entry
    return patches[0] if patches else None


def resolve_edit_body(event: Event) -> EditBody:
    """Pick old/new strings for a diff view, most authoritative source first."""
    tool_input = event.tool_input or {}
    result = event.tool_result

    result_path = result.file_path if result is not None else None
    wanted_path = _str_or_none(tool_input.get("file_path")) or result_path or ""
    patch = _matching_patch(result.structured_patch, wanted_path) if result is not None else None
    patch = patch or {}

    file_path = wanted_path or _str_or_none(patch.get("filePath")) or ""

    parsed_patch: ParsedUnifiedDiff | None = parse_unified_diff_from_unknown(patch.get("diff"))
    parsed_content: ParsedUnifiedDiff | None = (
        parse_unified_diff_from_unknown(result.content) if result is not None else None
    )

    old_string = _first_defined(
        _str_or_none(patch.get("oldString")),
        parsed_patch.old_string if parsed_patch else None,
        parsed_content.old_string if parsed_content else None,
        result.old_string if result is not None else None,
        _str_or_none(tool_input.get("old_string")),
    )
    new_string = _first_defined(
        _str_or_none(patch.get("newString")),
        parsed_patch.new_string if parsed_patch else None,
        parsed_content.new_string if parsed_content else None,
        result.new_string if result is not None else None,
        _str_or_none(tool_input.get("new_string")),
    )
    raw_diff = _first_defined(
        _str_or_none(patch.get("diff")) or None,
        (_str_or_none(result.content) or None) if result is not None else None,
    )

    return EditBody(
        file_path=file_path,
        old_string=old_string,
        new_string=new_string,
        raw_diff=raw_diff,
    )


def resolve_change_body(change: FileChange, event: Event | None) -> EditBody:
    """Diff body for one FileChange.

    A change made directly by `event` resolves through resolve_edit_body.
    Sub-agent changes share their parent's id, so they (and changes whose
    event is missing) fall back to the strings on the change record. A
    created file diffs against an empty body.
    """
    direct = (
        event is not None
        and not event.tool_error
        and event.tool_name == change.tool_name
        and extract_file_path(event.tool_name, event.tool_input) == change.file_path
    )
    if direct and change.change_type is AccessType.MODIFIED:
        return resolve_edit_body(event)
    if change.change_type is AccessType.CREATED:
        return EditBody(file_path=change.file_path, old_string="", new_string=change.content or "")
    return EditBody(
        file_path=change.file_path,
        old_string=change.old_string,
        new_string=change.new_string,
    )
