"""Typed session event log consumed by the change-tracking core.

The messaging layer hands over an ordered list of decoded JSON mappings
(user messages, tool invocations, tool results, nested sub-agent steps).
This module turns them into frozen value types so the core never has to
probe raw dicts for shape.

// [LAW:single-enforcer] parse_event is the sole validation boundary for log entries.
// [LAW:one-source-of-truth] Both camelCase (host) and snake_case keys are resolved here only.

This module is STABLE. Safe for `from` imports everywhere.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum


# ─── Type alias for JSON-parsed dicts ─────────────────────────────────────────

JsonDict = dict[str, object]


# ─── Enums ────────────────────────────────────────────────────────────────────


class EventRole(Enum):
    """Role tag of one log entry. Only USER and TOOL_CALL matter to the core."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    SYSTEM = "system"
    SUMMARY = "summary"
    UNKNOWN = "unknown"


# ─── Value types ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ToolResultFile:
    """File metadata attached to a Read result (what was actually returned)."""

    file_path: str | None = None
    start_line: int | None = None
    num_lines: int | None = None
    total_lines: int | None = None


@dataclass(frozen=True)
class ToolResult:
    """Structured tool result. Every field is optional; absence means no information."""

    file: ToolResultFile | None = None
    content: object = None
    structured_patch: tuple[JsonDict, ...] = ()
    file_path: str | None = None
    old_string: str | None = None
    new_string: str | None = None


@dataclass(frozen=True)
class SubagentStep:
    """One tool invocation made by a delegated sub-task. Carries no timestamp."""

    tool_name: str
    tool_input: JsonDict = field(default_factory=dict)
    tool_result: ToolResult | None = None
    tool_use_id: str = ""
    tool_error: bool = False


@dataclass(frozen=True)
class Event:
    """One entry in the ordered session log."""

    id: str
    role: EventRole
    timestamp: int = 0
    tool_name: str | None = None
    tool_input: JsonDict | None = None
    tool_result: ToolResult | None = None
    tool_error: bool = False
    subagent_steps: tuple[SubagentStep, ...] = ()


# ─── Parse boundary ──────────────────────────────────────────────────────────
# // [LAW:single-enforcer] Single parse boundary for log entry validation.


def _get(raw: Mapping, camel: str, snake: str | None = None) -> object:
    """Look up a key under its camelCase name, then its snake_case name."""
    if camel in raw:
        return raw[camel]
    if snake is not None:
        return raw.get(snake)
    return None


def _opt_str(v: object) -> str | None:
    if isinstance(v, str):
        return v
    return None


def _opt_int(v: object) -> int | None:
    """Narrow object to int; bools and non-numeric values are absent."""
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float) and v.is_integer():
        return int(v)
    return None


def _int(v: object, default: int = 0) -> int:
    narrowed = _opt_int(v)
    return default if narrowed is None else narrowed


def _mapping(v: object) -> JsonDict | None:
    if isinstance(v, Mapping):
        return {str(k): val for k, val in v.items()}
    return None


def parse_tool_result(raw: object) -> ToolResult | None:
    """Parse a tool result payload. Non-mapping payloads carry only `content`."""
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        # Plain-string or block-list results: keep the value for diff probing.
        return ToolResult(content=raw)

    file_raw = raw.get("file")
    result_file = None
    if isinstance(file_raw, Mapping):
        result_file = ToolResultFile(
            file_path=_opt_str(_get(file_raw, "filePath", "file_path")),
            start_line=_opt_int(_get(file_raw, "startLine", "start_line")),
            num_lines=_opt_int(_get(file_raw, "numLines", "num_lines")),
            total_lines=_opt_int(_get(file_raw, "totalLines", "total_lines")),
        )

    patch_raw = _get(raw, "structuredPatch", "structured_patch")
    patches: tuple[JsonDict, ...] = ()
    if isinstance(patch_raw, list):
        patches = tuple(m for m in (_mapping(p) for p in patch_raw) if m is not None)

    return ToolResult(
        file=result_file,
        content=raw.get("content"),
        structured_patch=patches,
        file_path=_opt_str(_get(raw, "filePath", "file_path")),
        old_string=_opt_str(_get(raw, "oldString", "old_string")),
        new_string=_opt_str(_get(raw, "newString", "new_string")),
    )


def parse_subagent_step(raw: object) -> SubagentStep | None:
    """Parse one nested sub-agent step. Returns None when no tool name is present."""
    if not isinstance(raw, Mapping):
        return None
    tool_name = _opt_str(_get(raw, "toolName", "tool_name"))
    if not tool_name:
        return None
    return SubagentStep(
        tool_name=tool_name,
        tool_input=_mapping(_get(raw, "toolInput", "tool_input")) or {},
        tool_result=parse_tool_result(_get(raw, "toolResult", "tool_result")),
        tool_use_id=_opt_str(_get(raw, "toolUseId", "tool_use_id")) or "",
        tool_error=bool(_get(raw, "toolError", "tool_error")),
    )


def _role(v: object) -> EventRole:
    try:
        return EventRole(v)
    except ValueError:
        return EventRole.UNKNOWN


def parse_event(raw: Mapping[str, object]) -> Event:
    """Parse a decoded log entry into a typed Event.

    Tolerant by construction: missing or mistyped optional fields become
    None / empty, never an exception.

    Args:
        raw: One decoded JSON object from the messaging layer

    Returns:
        Frozen Event
    """
    steps_raw = _get(raw, "subagentSteps", "subagent_steps")
    steps: tuple[SubagentStep, ...] = ()
    if isinstance(steps_raw, list):
        steps = tuple(s for s in (parse_subagent_step(s) for s in steps_raw) if s is not None)

    raw_id = raw.get("id")
    return Event(
        id="" if raw_id is None else str(raw_id),
        role=_role(raw.get("role")),
        timestamp=_int(raw.get("timestamp")),
        tool_name=_opt_str(_get(raw, "toolName", "tool_name")),
        tool_input=_mapping(_get(raw, "toolInput", "tool_input")),
        tool_result=parse_tool_result(_get(raw, "toolResult", "tool_result")),
        tool_error=bool(_get(raw, "toolError", "tool_error")),
        subagent_steps=steps,
    )


def parse_event_log(entries: Iterable[object]) -> list[Event]:
    """Parse an ordered sequence of decoded entries, skipping non-mapping items."""
    return [parse_event(entry) for entry in entries if isinstance(entry, Mapping)]
