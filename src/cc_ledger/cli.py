"""CLI entry point for cc-ledger."""

import argparse
import dataclasses
import json
import logging
import sys
from enum import Enum

from rich.console import Console
from rich.table import Table

import cc_ledger.io.logging_setup
import cc_ledger.rendering
import cc_ledger.settings
from cc_ledger.core.edit_body import EditBody, resolve_change_body
from cc_ledger.core.file_access import extract_files
from cc_ledger.core.turn_changes import (
    FileChange,
    extract_all_file_changes,
    extract_turn_summaries,
    group_changes_by_file,
)
from cc_ledger.core.unified_diff import (
    parse_unified_diff,
    parse_unified_diff_from_unknown,
)
from cc_ledger.event_types import Event
from cc_ledger.io.event_log import EventLogError, load_event_log

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NO_DIFF = 1
EXIT_BAD_LOG = 2
EXIT_BAD_SETTING = 3


# ─── JSON output ─────────────────────────────────────────────────────────────


def _json_factory(items: list[tuple[str, object]]) -> dict:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in items}


def to_jsonable(obj):
    """Convert dataclass results (and containers of them) to plain JSON data."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj, dict_factory=_json_factory)
    if isinstance(obj, dict):
        return {k: to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    return obj


def _print_json(data) -> None:
    print(json.dumps(to_jsonable(data), indent=2, ensure_ascii=False))


# ─── Commands ────────────────────────────────────────────────────────────────


def _cmd_files(args, console: Console) -> int:
    events = load_event_log(args.log)
    defaults = cc_ledger.settings.load_settings()
    cwd = args.cwd or defaults["default_cwd"]
    include_claude_md = args.include_claude_md or defaults["include_claude_md"]
    files = extract_files(events, cwd=cwd, include_claude_md=include_claude_md)
    if args.json:
        _print_json(files)
    else:
        console.print(cc_ledger.rendering.render_files_panel(files, cwd))
    return EXIT_OK


def _cmd_turns(args, console: Console) -> int:
    events = load_event_log(args.log)
    summaries = extract_turn_summaries(events, is_processing=args.processing)
    if args.json:
        _print_json(summaries)
    elif not summaries:
        console.print("No file changes.")
    else:
        console.print(cc_ledger.rendering.render_turns(summaries))
    return EXIT_OK


def _change_bodies(
    events: list[Event],
    grouped: dict[str, list[FileChange]],
) -> dict[str, list[EditBody]]:
    """Diff body for every change, parallel to `grouped`."""
    by_id = {event.id: event for event in events}
    return {
        path: [resolve_change_body(change, by_id.get(change.message_id)) for change in changes]
        for path, changes in grouped.items()
    }


def _cmd_changes(args, console: Console) -> int:
    events = load_event_log(args.log)
    cwd = args.cwd or cc_ledger.settings.get_setting("default_cwd")
    grouped = group_changes_by_file(extract_all_file_changes(events))
    bodies = _change_bodies(events, grouped) if args.diff else {}

    if args.json:
        payload = to_jsonable(grouped)
        for path, path_bodies in bodies.items():
            for entry, body in zip(payload[path], path_bodies):
                entry["body"] = to_jsonable(body)
        _print_json(payload)
        return EXIT_OK

    if not grouped:
        console.print("No file changes.")
        return EXIT_OK

    console.print(cc_ledger.rendering.render_changes_by_file(grouped, cwd))
    for path, path_bodies in bodies.items():
        for change, body in zip(grouped[path], path_bodies):
            console.rule("{} · {} · {}".format(change.file_name, change.tool_name, change.message_id))
            console.print(cc_ledger.rendering.render_edit_body(body), end="")
    return EXIT_OK


def _read_diff_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def _cmd_diff(args, console: Console) -> int:
    try:
        text = _read_diff_source(args.path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("cannot read %s: %s", args.path, exc)
        return EXIT_BAD_LOG

    # Payloads saved straight from a tool result may be any JSON shape.
    try:
        payload = json.loads(text)
    except (ValueError, RecursionError):
        parsed = parse_unified_diff(text)
    else:
        parsed = parse_unified_diff_from_unknown(payload)

    if parsed is None:
        logger.info("no unified diff found in %s", args.path)
        if not args.json:
            console.print("No diff found.")
        else:
            _print_json(None)
        return EXIT_NO_DIFF

    if args.json:
        _print_json(parsed)
    else:
        console.print(cc_ledger.rendering.render_diff(parsed), end="")
    return EXIT_OK


# ─── config ──────────────────────────────────────────────────────────────────


def _config_show(args, console: Console) -> int:
    values = cc_ledger.settings.load_settings()
    runtime = cc_ledger.io.logging_setup.get_runtime()
    config_path = str(cc_ledger.settings.get_config_path())
    log_file = runtime.file_path if runtime is not None else None

    if args.json:
        _print_json({"settings": values, "config_path": config_path, "log_file": log_file})
        return EXIT_OK

    table = Table(title="Settings", show_header=True, header_style="bold")
    table.add_column("Name", no_wrap=True)
    table.add_column("Value")
    table.add_column("Default", style="dim")
    table.add_column("Description", style="dim")
    for name, setting in cc_ledger.settings.SETTINGS.items():
        table.add_row(name, json.dumps(values[name]), json.dumps(setting.default), setting.help)
    console.print(table)
    console.print("settings file: {}".format(config_path))
    console.print("log file: {}".format(log_file or "(unavailable)"))
    return EXIT_OK


def _config_set(args, console: Console) -> int:
    value = cc_ledger.settings.set_setting(args.name, args.value)
    logger.info("setting %s = %r", args.name, value)
    if args.json:
        _print_json({args.name: value})
    else:
        console.print("{} = {}".format(args.name, json.dumps(value)))
    return EXIT_OK


def _config_unset(args, console: Console) -> int:
    removed = cc_ledger.settings.unset_setting(args.name)
    default = cc_ledger.settings.SETTINGS[args.name].default
    if args.json:
        _print_json({args.name: default, "removed": removed})
    elif removed:
        console.print("{} reset to default ({})".format(args.name, json.dumps(default)))
    else:
        console.print("{} was not set".format(args.name))
    return EXIT_OK


# [LAW:dataflow-not-control-flow] config action dispatch table
_CONFIG_ACTIONS = {
    "show": _config_show,
    "set": _config_set,
    "unset": _config_unset,
}


def _cmd_config(args, console: Console) -> int:
    try:
        return _CONFIG_ACTIONS[args.action](args, console)
    except cc_ledger.settings.SettingsError as exc:
        logger.error("%s", exc)
        return EXIT_BAD_SETTING


# [LAW:dataflow-not-control-flow] Subcommand dispatch table
_COMMANDS = {
    "files": _cmd_files,
    "turns": _cmd_turns,
    "changes": _cmd_changes,
    "diff": _cmd_diff,
    "config": _cmd_config,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cc-ledger",
        description="Summarize file access and per-turn changes in a coding-agent session log",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print machine-readable JSON instead of tables",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more to stderr (-v info, -vv debug); overrides CC_LEDGER_LOG_LEVEL",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    files = sub.add_parser("files", help="Files read, modified or created in the session")
    files.add_argument("log", help="Event log file (JSON array, {messages: [...]}, or JSONL)")
    files.add_argument("--cwd", default=None, help="Project directory for relative paths")
    files.add_argument(
        "--include-claude-md",
        action="store_true",
        default=False,
        help="Pin the project CLAUDE.md as read (requires --cwd or default_cwd setting)",
    )

    turns = sub.add_parser("turns", help="Per-turn file change summaries")
    turns.add_argument("log", help="Event log file")
    turns.add_argument(
        "--processing",
        action="store_true",
        default=False,
        help="Treat the log as mid-response: the trailing turn is not summarized",
    )

    changes = sub.add_parser("changes", help="All file changes grouped by file")
    changes.add_argument("log", help="Event log file")
    changes.add_argument("--cwd", default=None, help="Project directory for relative paths")
    changes.add_argument(
        "--diff",
        action="store_true",
        default=False,
        help="Show the before/after body of every change",
    )

    diff = sub.add_parser("diff", help="Parse a unified diff or diff payload")
    diff.add_argument("path", nargs="?", default="-", help="Diff file (default: stdin)")

    config = sub.add_parser("config", help="Show or change stored defaults")
    actions = config.add_subparsers(dest="action", required=True)
    actions.add_parser("show", help="Stored settings, settings file and log file")
    set_parser = actions.add_parser("set", help="Store a setting")
    set_parser.add_argument("name", help="Setting name")
    set_parser.add_argument("value", help="Setting value (true/false for flags, a path for directories)")
    unset_parser = actions.add_parser("unset", help="Reset a setting to its default")
    unset_parser.add_argument("name", help="Setting name")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    # [LAW:single-enforcer] Handler wiring is centralized in io.logging_setup.
    runtime = cc_ledger.io.logging_setup.configure(command=args.command, verbosity=args.verbose)
    logger.info("cc-ledger %s (log file %s)", args.command, runtime.file_path)

    console = Console()
    handler = _COMMANDS[args.command]
    try:
        return handler(args, console)
    except EventLogError as exc:
        logger.error("cannot load event log: %s", exc)
        return EXIT_BAD_LOG


if __name__ == "__main__":
    sys.exit(main())
