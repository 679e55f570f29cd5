"""Tests for cc_ledger.io.logging_setup: shared log file, levels, idempotence."""

import logging

import pytest

import cc_ledger.io.logging_setup as logging_setup


@pytest.fixture(autouse=True)
def _fresh_runtime(tmp_path, monkeypatch):
    monkeypatch.setenv("CC_LEDGER_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("CC_LEDGER_LOG_FILE", raising=False)
    monkeypatch.delenv("CC_LEDGER_LOG_LEVEL", raising=False)
    logging_setup.reset()
    yield
    logging_setup.reset()


def _flush():
    for handler in logging.getLogger("cc_ledger").handlers:
        handler.flush()


def test_configure_is_idempotent():
    first = logging_setup.configure("files")
    second = logging_setup.configure("turns", verbosity=2)
    assert first is second
    assert logging_setup.get_runtime() is first
    assert len(logging.getLogger("cc_ledger").handlers) == 2


def test_defaults(tmp_path):
    runtime = logging_setup.configure("files")
    assert runtime.command == "files"
    assert runtime.stderr_level == logging.WARNING
    assert runtime.file_level == logging.INFO
    assert runtime.file_path == str(tmp_path / "logs" / "cc-ledger.log")


def test_runs_share_one_file_tagged_by_command(tmp_path):
    logging_setup.configure("files")
    logging.getLogger("cc_ledger.cli").info("first run")
    logging_setup.reset()
    logging_setup.configure("turns")
    logging.getLogger("cc_ledger.cli").info("second run")
    _flush()

    text = (tmp_path / "logs" / "cc-ledger.log").read_text(encoding="utf-8")
    assert "[files] cc_ledger.cli first run" in text
    assert "[turns] cc_ledger.cli second run" in text


@pytest.mark.parametrize("verbosity,level", [(1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)])
def test_verbosity_beats_env(monkeypatch, verbosity, level):
    monkeypatch.setenv("CC_LEDGER_LOG_LEVEL", "error")
    runtime = logging_setup.configure(verbosity=verbosity)
    assert runtime.stderr_level == level
    assert runtime.file_level == min(level, logging.INFO)


def test_env_level_and_file(tmp_path, monkeypatch):
    log_file = tmp_path / "custom" / "ledger.log"
    monkeypatch.setenv("CC_LEDGER_LOG_FILE", str(log_file))
    monkeypatch.setenv("CC_LEDGER_LOG_LEVEL", "debug")
    runtime = logging_setup.configure()
    assert runtime.stderr_level == logging.DEBUG
    assert runtime.file_level == logging.DEBUG
    assert runtime.file_path == str(log_file)

    logging.getLogger("cc_ledger.core.file_access").debug("ledger built")
    _flush()
    assert "ledger built" in log_file.read_text(encoding="utf-8")


def test_stderr_stays_quiet_at_default_level(capsys):
    logging_setup.configure()
    logging.getLogger("cc_ledger.cli").info("routine")
    logging.getLogger("cc_ledger.cli").warning("attention")
    err = capsys.readouterr().err
    assert "routine" not in err
    assert "cc-ledger: WARNING attention" in err


def test_unknown_level_falls_back(monkeypatch):
    monkeypatch.setenv("CC_LEDGER_LOG_LEVEL", "chatty")
    assert logging_setup.configure().stderr_level == logging.WARNING


def test_reset_detaches_handlers():
    logging_setup.configure()
    logging_setup.reset()
    assert logging_setup.get_runtime() is None
    assert logging.getLogger("cc_ledger").handlers == []
