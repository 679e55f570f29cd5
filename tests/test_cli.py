"""Tests for cc_ledger.cli: subcommands end to end over log files."""

import io
import json

import pytest

import cc_ledger.io.logging_setup as logging_setup
import cc_ledger.settings
from cc_ledger.cli import EXIT_BAD_LOG, EXIT_BAD_SETTING, EXIT_NO_DIFF, EXIT_OK, main
from tests.harness import read_result, step_raw, tool_call_raw, user_raw


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("CC_LEDGER_LOG_FILE", str(tmp_path / "logs" / "cli.log"))
    monkeypatch.delenv("CC_LEDGER_LOG_LEVEL", raising=False)
    logging_setup.reset()
    yield
    logging_setup.reset()


@pytest.fixture
def log_file(tmp_path):
    entries = [
        user_raw("u1", 1),
        tool_call_raw("Read", {"file_path": "/proj/a.py"}, msg_id="t1", timestamp=2,
                      tool_result=read_result(1, 10, 100, file_path="/proj/a.py")),
        tool_call_raw("Edit", {"file_path": "/proj/b.py", "old_string": "x", "new_string": "y"},
                      msg_id="t2", timestamp=3),
        user_raw("u2", 4),
        tool_call_raw("Write", {"file_path": "/proj/b.py", "content": "z"}, msg_id="t3", timestamp=5),
    ]
    path = tmp_path / "session.json"
    path.write_text(json.dumps(entries), encoding="utf-8")
    return str(path)


def test_files_json(log_file, capsys):
    assert main(["--json", "files", log_file]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert [f["path"] for f in data] == ["/proj/b.py", "/proj/a.py"]
    assert data[0]["access_type"] == "created"
    assert data[1]["ranges"] == [{"start": 1, "end": 10}]
    assert data[1]["total_lines"] == 100


def test_files_include_claude_md_from_settings(log_file, capsys):
    cc_ledger.settings.set_setting("include_claude_md", "true")
    cc_ledger.settings.set_setting("default_cwd", "/proj")
    assert main(["--json", "files", log_file]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data[-1]["path"] == "/proj/CLAUDE.md"


def test_files_table(log_file, capsys):
    assert main(["files", log_file, "--cwd", "/proj"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "a.py" in out
    assert "Modified" not in out
    assert "Created" in out


def test_turns_json(log_file, capsys):
    assert main(["--json", "turns", log_file]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert [t["turn_index"] for t in data] == [0, 1]
    assert data[0]["modified_count"] == 1
    assert data[1]["changes"][0]["change_type"] == "created"


def test_turns_processing_drops_trailing_turn(log_file, capsys):
    assert main(["--json", "turns", "--processing", log_file]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert [t["user_message_id"] for t in data] == ["u1"]


def test_changes_json(log_file, capsys):
    assert main(["--json", "changes", log_file]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert list(data) == ["/proj/b.py"]
    assert [c["tool_name"] for c in data["/proj/b.py"]] == ["Edit", "Write"]


def test_missing_log_exits_2(tmp_path, capsys):
    assert main(["files", str(tmp_path / "nope.json")]) == EXIT_BAD_LOG


def test_diff_plain_text(tmp_path, capsys):
    path = tmp_path / "change.diff"
    path.write_text("--- a/x\n+++ b/x\n@@ -1 +1 @@\n-old line\n+new line\n", encoding="utf-8")
    assert main(["--json", "diff", str(path)]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data == {"old_string": "old line", "new_string": "new line"}


def test_diff_json_payload(tmp_path, capsys):
    path = tmp_path / "payload.json"
    path.write_text(json.dumps({"patch": "@@\n-a\n+b"}), encoding="utf-8")
    assert main(["diff", str(path)]) == EXIT_OK
    out = capsys.readouterr().out
    assert "-a" in out
    assert "+b" in out


def test_diff_nothing_found(tmp_path, capsys):
    path = tmp_path / "notes.txt"
    path.write_text("just some notes\n", encoding="utf-8")
    assert main(["diff", str(path)]) == EXIT_NO_DIFF
    assert "No diff found." in capsys.readouterr().out


def test_diff_from_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("@@\n-left\n+right"))
    assert main(["--json", "diff"]) == EXIT_OK
    assert json.loads(capsys.readouterr().out) == {"old_string": "left", "new_string": "right"}


def test_subcommand_required(capsys):
    with pytest.raises(SystemExit):
        main([])


def test_diff_deeply_nested_json_payload(tmp_path, capsys):
    path = tmp_path / "deep.json"
    path.write_text("[" * 100000 + "]" * 100000, encoding="utf-8")
    assert main(["diff", str(path)]) == EXIT_NO_DIFF
    assert "No diff found." in capsys.readouterr().out


# ─── changes --diff ──────────────────────────────────────────────────────────


def test_changes_diff_json_bodies(log_file, capsys):
    assert main(["--json", "changes", "--diff", log_file]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    edit_entry, write_entry = data["/proj/b.py"]
    assert edit_entry["body"] == {
        "file_path": "/proj/b.py",
        "old_string": "x",
        "new_string": "y",
        "raw_diff": None,
    }
    assert write_entry["body"]["old_string"] == ""
    assert write_entry["body"]["new_string"] == "z"


def test_changes_without_diff_has_no_bodies(log_file, capsys):
    assert main(["--json", "changes", log_file]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert all("body" not in entry for entry in data["/proj/b.py"])


def test_changes_diff_prefers_result_patch(tmp_path, capsys):
    entries = [
        user_raw("u1", 1),
        tool_call_raw(
            "Edit",
            {"file_path": "/proj/c.py", "old_string": "lossy", "new_string": "lossy2"},
            msg_id="t1",
            timestamp=2,
            tool_result={
                "structuredPatch": [
                    {"filePath": "/proj/c.py", "diff": "@@ -1 +1 @@\n-exact old\n+exact new"},
                ],
            },
        ),
        tool_call_raw(
            "Task",
            {"prompt": "go"},
            msg_id="t2",
            timestamp=3,
            subagent_steps=[
                step_raw("Edit", {"file_path": "/proj/c.py", "old_string": "sub old", "new_string": "sub new"}),
            ],
        ),
    ]
    path = tmp_path / "patched.json"
    path.write_text(json.dumps(entries), encoding="utf-8")

    assert main(["changes", "--diff", str(path)]) == EXIT_OK
    out = capsys.readouterr().out
    assert "-exact old" in out
    assert "+exact new" in out
    assert "lossy" not in out
    assert "-sub old" in out
    assert "+sub new" in out


# ─── config ──────────────────────────────────────────────────────────────────


def test_config_set_then_files_uses_defaults(log_file, capsys):
    assert main(["config", "set", "default_cwd", "/proj/"]) == EXIT_OK
    assert main(["config", "set", "include_claude_md", "yes"]) == EXIT_OK
    capsys.readouterr()
    assert main(["--json", "files", log_file]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data[-1]["path"] == "/proj/CLAUDE.md"


def test_config_show_reports_paths(tmp_path, capsys):
    cc_ledger.settings.set_setting("include_claude_md", "true")
    assert main(["--json", "config", "show"]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data["settings"] == {"include_claude_md": True, "default_cwd": None}
    assert data["config_path"] == str(tmp_path / "config" / "cc-ledger" / "settings.json")
    assert data["log_file"] == str(tmp_path / "logs" / "cli.log")


def test_config_show_table(capsys):
    assert main(["config", "show"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "include_claude_md" in out
    assert "log file:" in out


def test_config_unset(capsys):
    cc_ledger.settings.set_setting("default_cwd", "/proj")
    assert main(["--json", "config", "unset", "default_cwd"]) == EXIT_OK
    assert json.loads(capsys.readouterr().out) == {"default_cwd": None, "removed": True}
    assert cc_ledger.settings.get_setting("default_cwd") is None


def test_config_bad_value_exits_3(capsys):
    assert main(["config", "set", "include_claude_md", "maybe"]) == EXIT_BAD_SETTING
    assert "true/false" in capsys.readouterr().err
    assert main(["config", "unset", "colour"]) == EXIT_BAD_SETTING


def test_verbose_flag_logs_to_stderr(log_file, capsys):
    assert main(["-v", "files", log_file]) == EXIT_OK
    assert "cc-ledger: INFO cc-ledger files" in capsys.readouterr().err
