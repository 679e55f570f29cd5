"""Logging bootstrap for the cc-ledger CLI.

Every invocation appends to one rotating log file shared across runs
(`cc-ledger.log` under CC_LEDGER_LOG_DIR), each line tagged with the
subcommand that wrote it. stderr only shows what the user asked for:
warnings by default, more with -v / CC_LEDGER_LOG_LEVEL. The file always
keeps at least INFO so a run's command and outcome can be traced later.

// [LAW:single-enforcer] Logger handler wiring is enforced in this module only.
// [LAW:one-source-of-truth] The resolved log file and levels live in LoggingRuntime.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

PACKAGE_LOGGER = "cc_ledger"
LOG_FILE_NAME = "cc-ledger.log"
DEFAULT_STDERR_LEVEL = logging.WARNING

# -v count → stderr level; anything past the end is DEBUG.
_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


@dataclass(frozen=True)
class LoggingRuntime:
    command: str
    stderr_level: int
    file_level: int
    file_path: str


_RUNTIME: LoggingRuntime | None = None


class _CommandTag(logging.Filter):
    """Stamp each record with the subcommand for the shared log file."""

    def __init__(self, command: str):
        super().__init__()
        self.command = command

    def filter(self, record: logging.LogRecord) -> bool:
        record.command = self.command
        return True


def _level_from_env() -> int:
    raw = os.environ.get("CC_LEDGER_LOG_LEVEL", "").strip().upper()
    level = logging.getLevelName(raw) if raw else DEFAULT_STDERR_LEVEL
    # getLevelName returns "Level X" strings for unknown names
    return level if isinstance(level, int) else DEFAULT_STDERR_LEVEL


def resolve_stderr_level(verbosity: int = 0) -> int:
    """-v flags win over CC_LEDGER_LOG_LEVEL; without either, WARNING."""
    if verbosity > 0:
        return _VERBOSITY_LEVELS[min(verbosity, len(_VERBOSITY_LEVELS) - 1)]
    return _level_from_env()


def resolve_log_path() -> Path:
    explicit = os.environ.get("CC_LEDGER_LOG_FILE")
    if explicit:
        return Path(explicit)
    log_dir = os.environ.get("CC_LEDGER_LOG_DIR") or os.path.expanduser("~/.local/share/cc-ledger/logs")
    return Path(log_dir) / LOG_FILE_NAME


def configure(command: str = "cli", verbosity: int = 0) -> LoggingRuntime:
    """Attach stderr and rotating-file handlers to the cc_ledger logger.

    Idempotent: later calls return the runtime from the first one.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    stderr_level = resolve_stderr_level(verbosity)
    file_level = min(stderr_level, logging.INFO)
    file_path = resolve_log_path()
    file_path.parent.mkdir(parents=True, exist_ok=True)

    stderr_handler = logging.StreamHandler()
    stderr_handler.setLevel(stderr_level)
    stderr_handler.setFormatter(logging.Formatter("cc-ledger: %(levelname)s %(message)s"))

    file_handler = RotatingFileHandler(file_path, maxBytes=1024 * 1024, backupCount=2, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.addFilter(_CommandTag(command))
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s [%(command)s] %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )

    # [LAW:single-enforcer] Module loggers propagate here and stop.
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(min(stderr_level, file_level))
    logger.propagate = False
    logger.handlers.clear()
    logger.addHandler(stderr_handler)
    logger.addHandler(file_handler)
    logging.captureWarnings(True)

    _RUNTIME = LoggingRuntime(
        command=command,
        stderr_level=stderr_level,
        file_level=file_level,
        file_path=str(file_path),
    )
    return _RUNTIME


def get_runtime() -> LoggingRuntime | None:
    return _RUNTIME


def reset() -> None:
    """Detach handlers and forget the runtime so configure() can run again."""
    global _RUNTIME
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    _RUNTIME = None
