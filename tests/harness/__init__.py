"""Event log test harness for cc-ledger.

Re-exports builders for convenient imports:
    from tests.harness import user, edit, write, read, tool_call, ...
"""

from tests.harness.builders import (
    assistant,
    assistant_raw,
    edit,
    read,
    read_result,
    step_raw,
    tool_call,
    tool_call_raw,
    user,
    user_raw,
    write,
)

__all__ = [
    "assistant",
    "assistant_raw",
    "edit",
    "read",
    "read_result",
    "step_raw",
    "tool_call",
    "tool_call_raw",
    "user",
    "user_raw",
    "write",
]
