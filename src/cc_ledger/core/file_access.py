"""File-access ledger: which files a session read, modified or created.

Pure data transformation over the event log for the files panel. The ledger
is rebuilt from scratch on every call; nothing here is cached or persisted.

// [LAW:dataflow-not-control-flow] extract_files() folds every tool call through record_access().
// [LAW:one-source-of-truth] Access upgrades go through core.access.upgrade_access.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from cc_ledger.core.access import AccessType, upgrade_access
from cc_ledger.core.line_ranges import LineRange, merge_range
from cc_ledger.event_types import Event, EventRole

logger = logging.getLogger(__name__)

# Loaded by the agent CLI at startup even when no tool call reads it.
CLAUDE_MD = "CLAUDE.md"


@dataclass
class FileAccess:
    path: str
    access_type: AccessType
    last_accessed: int
    # Line ranges read (Read tool only). Empty = whole file known.
    ranges: list[LineRange] = field(default_factory=list)
    # Total lines in the file, from the most recent Read result.
    total_lines: int | None = None


@dataclass(frozen=True)
class RelativePath:
    file_name: str
    dir_path: str


# ─── Tool classification ─────────────────────────────────────────────────────

# [LAW:dataflow-not-control-flow] Tool → access type mapping
_TOOL_ACCESS: dict[str, AccessType] = {
    "Read": AccessType.READ,
    "Edit": AccessType.MODIFIED,
    "Write": AccessType.CREATED,
    "NotebookEdit": AccessType.CREATED,
}

_TOOL_PATH_FIELD: dict[str, str] = {
    "Read": "file_path",
    "Edit": "file_path",
    "Write": "file_path",
    "NotebookEdit": "notebook_path",
}


def get_tool_access(tool_name: str | None) -> AccessType | None:
    """Classify a tool by the access it implies. Unknown tools → None."""
    if tool_name is None:
        return None
    return _TOOL_ACCESS.get(tool_name)


def extract_file_path(tool_name: str | None, tool_input: Mapping[str, object] | None) -> str | None:
    """Return the touched path from a tool's input, or None when absent/empty."""
    if tool_name is None or not tool_input:
        return None
    key = _TOOL_PATH_FIELD.get(tool_name)
    if key is None:
        return None
    value = tool_input.get(key)
    if isinstance(value, str) and value:
        return value
    return None


# ─── Read ranges ─────────────────────────────────────────────────────────────


def _positive_int(v: object) -> int | None:
    """Narrow a request parameter to an int; 0, bools and non-numbers count as absent."""
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    n = int(v)
    return n if n else None


def extract_subagent_read_range(tool_input: Mapping[str, object] | None) -> LineRange | None:
    """Range from request parameters alone. None = full-file read.

    Without a limit the end is unknown; the range covers just the start line.
    """
    if not tool_input:
        return None
    offset = _positive_int(tool_input.get("offset"))
    limit = _positive_int(tool_input.get("limit"))
    if offset is None and limit is None:
        return None
    start = offset if offset is not None else 1
    if limit is None:
        return LineRange(start, start)
    return LineRange(start, max(start, start + limit - 1))


def extract_read_range(event: Event) -> LineRange | None:
    """Range actually read by a Read call. None = full-file read.

    Result metadata (startLine/numLines/totalLines) is preferred over the
    request's offset/limit because it reflects what was returned. A read
    from line 1 whose line count reaches the file's total is a full read.
    """
    result_file = event.tool_result.file if event.tool_result is not None else None
    if result_file is not None and result_file.start_line is not None and result_file.num_lines is not None:
        start = result_file.start_line
        num_lines = result_file.num_lines
        total = result_file.total_lines
        if start == 1 and total is not None and num_lines >= total:
            return None
        return LineRange(start, max(start, start + num_lines - 1))

    # Result has not arrived yet
    return extract_subagent_read_range(event.tool_input)


# ─── Ledger fold ─────────────────────────────────────────────────────────────


def record_access(
    file_map: dict[str, FileAccess],
    path: str,
    access_type: AccessType,
    timestamp: int,
    range_: LineRange | None,
    total_lines: int | None = None,
) -> None:
    """Fold one touch into the ledger.

    Access type only upgrades; last_accessed keeps the max timestamp since
    nested sub-agent steps can arrive out of order. For reads a full read
    clears partial ranges, a partial read merges into existing partial
    ranges, and an already-full entry stays full.
    """
    existing = file_map.get(path)
    if existing is None:
        file_map[path] = FileAccess(
            path=path,
            access_type=access_type,
            last_accessed=timestamp,
            ranges=[range_] if range_ is not None else [],
            total_lines=total_lines,
        )
        return

    existing.access_type = upgrade_access(existing.access_type, access_type)
    existing.last_accessed = max(existing.last_accessed, timestamp)
    if total_lines is not None:
        existing.total_lines = total_lines

    if access_type is AccessType.READ:
        if range_ is None:
            existing.ranges = []
        elif existing.ranges:
            existing.ranges = merge_range(existing.ranges, range_)


def _result_total_lines(result) -> int | None:
    if result is None or result.file is None:
        return None
    return result.file.total_lines


def extract_files(
    events: Iterable[Event],
    cwd: str | None = None,
    include_claude_md: bool = False,
) -> list[FileAccess]:
    """Build the file-access ledger, most recently accessed first.

    Failed tool calls are skipped. Sub-agent steps use the parent event's
    timestamp and have no authoritative range metadata.
    """
    file_map: dict[str, FileAccess] = {}

    for event in events:
        if event.role is not EventRole.TOOL_CALL:
            continue

        if event.tool_name and event.tool_input and not event.tool_error:
            access = get_tool_access(event.tool_name)
            path = extract_file_path(event.tool_name, event.tool_input) if access else None
            if access is not None and path:
                range_ = extract_read_range(event) if access is AccessType.READ else None
                record_access(
                    file_map, path, access, event.timestamp, range_,
                    _result_total_lines(event.tool_result),
                )

        for step in event.subagent_steps:
            if step.tool_error:
                continue
            access = get_tool_access(step.tool_name)
            path = extract_file_path(step.tool_name, step.tool_input) if access else None
            if access is None or not path:
                continue
            range_ = extract_subagent_read_range(step.tool_input) if access is AccessType.READ else None
            record_access(
                file_map, path, access, event.timestamp, range_,
                _result_total_lines(step.tool_result),
            )

    if include_claude_md and cwd:
        claude_md_path = "{}/{}".format(cwd, CLAUDE_MD)
        if claude_md_path not in file_map:
            # Pinned at timestamp 0 so it sorts last.
            file_map[claude_md_path] = FileAccess(
                path=claude_md_path,
                access_type=AccessType.READ,
                last_accessed=0,
            )

    logger.debug("file ledger built: %d paths", len(file_map))
    return sorted(file_map.values(), key=lambda f: f.last_accessed, reverse=True)


def get_relative_path(full_path: str, cwd: str | None = None) -> RelativePath:
    """Split a path into file name and directory, relative to cwd when inside it."""
    if cwd and full_path.startswith(cwd):
        relative = full_path[len(cwd) + 1:]
    else:
        relative = full_path

    dir_path, sep, file_name = relative.rpartition("/")
    if not sep:
        return RelativePath(file_name=relative, dir_path="")
    return RelativePath(file_name=file_name, dir_path=dir_path)
