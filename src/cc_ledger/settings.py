"""Persistent CLI defaults for cc-ledger.

A JSON object at $XDG_CONFIG_HOME/cc-ledger/settings.json. Only the keys
registered in SETTINGS mean anything; `cc-ledger config` reads and writes
them and the files/changes commands use them when a flag is not given.
Unknown keys already in the file are left untouched on write.

Import as: import cc_ledger.settings
"""

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable


class SettingsError(ValueError):
    """Unknown setting name, or a value that does not parse for its setting."""


@dataclass(frozen=True)
class Setting:
    name: str
    default: Any
    # Command-line text → value stored in the file. Raises SettingsError.
    parse: Callable[[str], Any]
    # Stored JSON value (possibly hand-edited) → typed value. Never raises.
    coerce: Callable[[Any], Any]
    help: str


_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


def _parse_bool(text: str) -> bool:
    word = text.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise SettingsError("expected true/false, got {!r}".format(text))


def _parse_dir(text: str) -> str:
    value = text.strip()
    if not value:
        raise SettingsError("directory must not be empty (use `config unset` to clear it)")
    # No trailing slash: CLAUDE.md and relative paths are joined with "/".
    return os.path.normpath(os.path.expanduser(value))


def _coerce_dir(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


# [LAW:one-source-of-truth] Every recognised setting, its default and its parsers.
SETTINGS: dict[str, Setting] = {
    s.name: s
    for s in (
        Setting(
            name="include_claude_md",
            default=False,
            parse=_parse_bool,
            coerce=bool,
            help="Pin <cwd>/CLAUDE.md in the files panel",
        ),
        Setting(
            name="default_cwd",
            default=None,
            parse=_parse_dir,
            coerce=_coerce_dir,
            help="Project directory used when --cwd is not given",
        ),
    )
}


def _lookup(name: str) -> Setting:
    try:
        return SETTINGS[name]
    except KeyError:
        known = ", ".join(sorted(SETTINGS))
        raise SettingsError("unknown setting {!r} (known: {})".format(name, known)) from None


def get_config_path() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return Path(config_home) / "cc-ledger" / "settings.json"


def _read_raw() -> dict:
    # [LAW:dataflow-not-control-flow] Missing or unreadable file is just "no stored values".
    try:
        data = json.loads(get_config_path().read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def _write_raw(data: dict) -> None:
    """Replace the settings file atomically (temp file in the same dir + rename)."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".settings-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def load_settings() -> dict[str, Any]:
    """Effective value of every registered setting (stored value or default)."""
    raw = _read_raw()
    return {
        name: setting.coerce(raw[name]) if name in raw else setting.default
        for name, setting in SETTINGS.items()
    }


def get_setting(name: str) -> Any:
    _lookup(name)
    return load_settings()[name]


def set_setting(name: str, text: str) -> Any:
    """Parse `text` for setting `name`, store it, and return the stored value."""
    value = _lookup(name).parse(text)
    raw = _read_raw()
    raw[name] = value
    _write_raw(raw)
    return value


def unset_setting(name: str) -> bool:
    """Drop a stored value so the default applies again. False if none was stored."""
    _lookup(name)
    raw = _read_raw()
    if name not in raw:
        return False
    del raw[name]
    _write_raw(raw)
    return True
