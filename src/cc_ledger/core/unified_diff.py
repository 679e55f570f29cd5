"""Unified-diff normalizer/parser.

Turns raw, possibly escaped or JSON-wrapped diff text into the reconstructed
pre- and post-image bodies. Best effort for display: returns None for text
that carries no +/- lines instead of raising.

// [LAW:dataflow-not-control-flow] parse_unified_diff() is a pure function: text in, bodies out.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedUnifiedDiff:
    old_string: str
    new_string: str


DIFF_META_PREFIXES = (
    "diff --git ",
    "index ",
    "--- ",
    "+++ ",
    "*** ",
)

NO_NEWLINE_MARKER = "\\ No newline at end of file"

# Probe order for object-shaped payloads from different tool ecosystems.
_PAYLOAD_FIELDS = ("diff", "content", "text", "patch")


# ─── Normalization ───────────────────────────────────────────────────────────


def _normalize_diff_text(text: str) -> str:
    """Unescape \\n sequences when the body arrived double-encoded."""
    if not text:
        return text
    if "\n" not in text and "\\n" in text:
        return text.replace("\\n", "\n")
    return text


def _try_extract_content_field(text: str) -> str | None:
    """Return the string `content` field of a one-level JSON envelope, if any.

    Runs on the text as received, before \\n unescaping. Raw control
    characters inside JSON strings are accepted.
    """
    trimmed = text.strip()
    if not trimmed.startswith("{") or not trimmed.endswith("}"):
        return None
    try:
        parsed = json.loads(trimmed, strict=False)
    except (ValueError, RecursionError) as exc:
        logger.debug("diff envelope is not JSON: %s", exc)
        return None
    if not isinstance(parsed, dict):
        return None
    content = parsed.get("content")
    return content if isinstance(content, str) else None


# ─── Parsing ─────────────────────────────────────────────────────────────────


def parse_unified_diff(diff_text: str) -> ParsedUnifiedDiff | None:
    """Replay unified-diff lines into old/new bodies.

    Independent hunks are separated by one blank line in both bodies.
    Returns None when no +/- line was seen (not a diff, or a no-op diff).
    """
    if not diff_text:
        return None

    old_lines: list[str] = []
    new_lines: list[str] = []
    saw_change_line = False
    saw_hunk_header = False

    content_field = _try_extract_content_field(diff_text)
    normalized = _normalize_diff_text(content_field or diff_text)

    for line in normalized.replace("\r\n", "\n").split("\n"):
        if line.startswith("@@"):
            if saw_hunk_header and (old_lines or new_lines):
                old_lines.append("")
                new_lines.append("")
            saw_hunk_header = True
            continue
        if line.startswith(DIFF_META_PREFIXES):
            continue
        if line == NO_NEWLINE_MARKER:
            continue

        if line.startswith("+"):
            new_lines.append(line[1:])
            saw_change_line = True
        elif line.startswith("-"):
            old_lines.append(line[1:])
            saw_change_line = True
        elif line.startswith(" "):
            content = line[1:]
            old_lines.append(content)
            new_lines.append(content)

    if not saw_change_line:
        return None
    return ParsedUnifiedDiff(
        old_string="\n".join(old_lines),
        new_string="\n".join(new_lines),
    )


def _is_text_block(value: object) -> bool:
    return (
        isinstance(value, dict)
        and value.get("type") == "text"
        and isinstance(value.get("text"), str)
    )


def parse_unified_diff_from_unknown(value: object) -> ParsedUnifiedDiff | None:
    """Resolve a diff from a payload of unknown shape.

    - str: parsed directly
    - list: text-typed content blocks joined in order, then parsed
    - dict: `diff`, `content`, `text`, `patch` probed in order, depth first;
      first field that parses wins

    Nested mappings are walked with an explicit stack, so nesting depth is
    bounded by memory rather than the interpreter recursion limit.
    """
    pending: list[object] = [value]
    while pending:
        current = pending.pop()
        if isinstance(current, str):
            parsed = parse_unified_diff(current)
        elif isinstance(current, (list, tuple)):
            text = "\n".join(block["text"] for block in current if _is_text_block(block))
            parsed = parse_unified_diff(text) if text else None
        elif isinstance(current, dict):
            pending.extend(current.get(key) for key in reversed(_PAYLOAD_FIELDS))
            continue
        else:
            continue
        if parsed is not None:
            return parsed
    return None
