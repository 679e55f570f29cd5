"""Event log file loading.

Accepts the shapes session exports come in:
  - a JSON array of message objects
  - a JSON object with a "messages" list
  - JSON Lines, one message object per line

The core never touches the file system; this module is the boundary that
reads a file and hands typed events to it.
"""

import json
import logging
from pathlib import Path

from cc_ledger.event_types import Event, parse_event_log

logger = logging.getLogger(__name__)


class EventLogError(ValueError):
    """An event log file could not be read or decoded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


def decode_event_log(text: str, source: str = "<string>") -> list:
    """Decode raw log text into a list of entry mappings (not yet validated)."""
    stripped = text.strip()
    if not stripped:
        return []

    try:
        data = json.loads(stripped)
    except json.JSONDecodeError:
        data = None
    else:
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            messages = data.get("messages")
            if isinstance(messages, list):
                return messages
            # A single object on one line is also valid JSONL.
            return [data]
        raise EventLogError(source, "top-level JSON value must be an array or object")

    entries = []
    for lineno, line in enumerate(stripped.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(json.loads(line))
        except json.JSONDecodeError as exc:
            raise EventLogError(source, f"line {lineno}: {exc.msg}") from exc
    return entries


def load_event_log(path: str) -> list[Event]:
    """Read and parse an event log file.

    Raises:
        EventLogError: file unreadable or not decodable as JSON / JSONL
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise EventLogError(path, str(exc)) from exc

    entries = decode_event_log(text, source=path)
    events = parse_event_log(entries)
    skipped = len(entries) - len(events)
    if skipped:
        logger.debug("skipped %d non-object entries in %s", skipped, path)
    logger.debug("loaded %d events from %s", len(events), path)
    return events
