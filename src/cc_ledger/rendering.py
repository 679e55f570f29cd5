"""Panel rendering logic - pure functions for building display renderables.

Builds rich Text / Table objects for the files panel, the per-turn change
summaries, the cumulative changes view and the diff view. No console I/O
here; the CLI decides where renderables go.
"""

import difflib

from rich.table import Table
from rich.text import Text

from cc_ledger.core.access import ACCESS_COLOR, ACCESS_GLYPH, ACCESS_LABEL, AccessType, upgrade_access
from cc_ledger.core.edit_body import EditBody
from cc_ledger.core.file_access import FileAccess, get_relative_path
from cc_ledger.core.line_ranges import format_ranges
from cc_ledger.core.turn_changes import FileChange, TurnSummary
from cc_ledger.core.unified_diff import ParsedUnifiedDiff


def _plural(n: int, word: str) -> str:
    return "{} {}{}".format(n, word, "" if n == 1 else "s")


def make_diff_lines(old_text: str, new_text: str) -> list[tuple[str, str]]:
    """Compute diff lines as (kind, text) tuples.

    kind is one of: "hunk", "add", "del", "ctx"
    """
    old_lines = old_text.splitlines()
    new_lines = new_text.splitlines()
    lines = []
    for line in difflib.unified_diff(old_lines, new_lines, lineterm="", n=2):
        if line.startswith("+++") or line.startswith("---"):
            continue
        elif line.startswith("@@"):
            lines.append(("hunk", line.strip()))
        elif line.startswith("+"):
            lines.append(("add", line[1:]))
        elif line.startswith("-"):
            lines.append(("del", line[1:]))
        else:
            lines.append(("ctx", line[1:]))
    return lines


# [LAW:dataflow-not-control-flow] Diff line kind → (prefix, style)
_DIFF_LINE_STYLE = {
    "hunk": ("", "cyan"),
    "add": ("+", "green"),
    "del": ("-", "red"),
    "ctx": (" ", "dim"),
}


def render_diff(parsed: ParsedUnifiedDiff) -> Text:
    """Render a parsed before/after pair as a colored line diff."""
    result = Text()
    for kind, line in make_diff_lines(parsed.old_string, parsed.new_string):
        prefix, style = _DIFF_LINE_STYLE[kind]
        result.append(prefix + line + "\n", style=style)
    return result


def render_edit_body(body: EditBody) -> Text:
    """Diff view for one change; raw diff text when no old/new pair resolved."""
    if body.has_strings:
        return render_diff(ParsedUnifiedDiff(body.old_string or "", body.new_string or ""))
    if body.raw_diff:
        return Text(body.raw_diff + "\n")
    return Text("No diff available.\n", style="dim")


def render_files_panel(files: list[FileAccess], cwd: str | None = None) -> Table:
    """Files panel: one row per touched path with access glyph, label and ranges."""
    table = Table(title="Files", show_header=True, header_style="bold", expand=False)
    table.add_column("", width=1)
    table.add_column("File")
    table.add_column("Directory", style="dim")
    table.add_column("Access")
    table.add_column("Lines", style="dim")

    for file in files:
        rel = get_relative_path(file.path, cwd)
        color = ACCESS_COLOR[file.access_type]
        table.add_row(
            Text(ACCESS_GLYPH[file.access_type], style=color),
            rel.file_name,
            rel.dir_path,
            Text(ACCESS_LABEL[file.access_type], style=color),
            format_ranges(file) or "",
        )
    return table


def render_turn_summary(summary: TurnSummary) -> Text:
    """Inline summary line, e.g. "3 files changed · 2 modified · 1 created"."""
    result = Text()
    result.append(_plural(summary.file_count, "file"), style="bold")
    result.append(" changed")
    if summary.modified_count:
        result.append(" · ")
        result.append(
            "{} modified".format(summary.modified_count),
            style=ACCESS_COLOR[AccessType.MODIFIED],
        )
    if summary.created_count:
        result.append(" · ")
        result.append(
            "{} created".format(summary.created_count),
            style=ACCESS_COLOR[AccessType.CREATED],
        )
    return result


def _change_row(change: FileChange) -> tuple[Text, str, str]:
    color = ACCESS_COLOR[change.change_type]
    return (
        Text(ACCESS_GLYPH[change.change_type], style=color),
        change.file_name,
        change.tool_name,
    )


def render_turns(summaries: list[TurnSummary]) -> Table:
    """Per-turn changes table. Each turn heads its own block of change rows."""
    table = Table(title="Changes by turn", show_header=True, header_style="bold")
    table.add_column("Turn", justify="right")
    table.add_column("", width=1)
    table.add_column("File")
    table.add_column("Tool", style="dim")

    for summary in summaries:
        table.add_row(str(summary.turn_index + 1), "", render_turn_summary(summary), "")
        for change in summary.changes:
            table.add_row("", *_change_row(change))
    return table


def render_changes_by_file(grouped: dict[str, list[FileChange]], cwd: str | None = None) -> Table:
    """Cumulative view: one row per path with the number of edits it received."""
    table = Table(title="All changes", show_header=True, header_style="bold")
    table.add_column("", width=1)
    table.add_column("File")
    table.add_column("Directory", style="dim")
    table.add_column("Edits", justify="right")

    for path, changes in grouped.items():
        # [LAW:one-source-of-truth] Same created-beats-modified rule as the turn stats.
        final_type = None
        for change in changes:
            final_type = upgrade_access(final_type, change.change_type)
        rel = get_relative_path(path, cwd)
        table.add_row(
            Text(ACCESS_GLYPH[final_type], style=ACCESS_COLOR[final_type]),
            rel.file_name,
            rel.dir_path,
            str(len(changes)),
        )
    return table
