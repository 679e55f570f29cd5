"""Guard: the change-tracking core stays pure and imports stay module-level.

core/ must not reach for file-system, process or rendering modules, and
must not import the I/O shell. Anything under src/ must not import
cc_ledger.* inside a function body.

This file is named with `test_0_` so it runs first.
"""

import ast
import os


_SRC_ROOT = os.path.join(os.path.dirname(__file__), "..", "src", "cc_ledger")
_CORE_ROOT = os.path.join(_SRC_ROOT, "core")

_FORBIDDEN_IN_CORE = ("os", "pathlib", "shutil", "subprocess", "socket", "rich", "cc_ledger.io", "cc_ledger.cli")


def _iter_trees(root):
    for dirpath, _dirs, files in os.walk(root):
        for fname in files:
            if not fname.endswith(".py"):
                continue
            path = os.path.join(dirpath, fname)
            with open(path, encoding="utf-8") as f:
                yield os.path.relpath(path, root), ast.parse(f.read(), filename=path)


def _imported_names(node):
    if isinstance(node, ast.Import):
        return [alias.name for alias in node.names]
    if isinstance(node, ast.ImportFrom) and node.module:
        return [node.module]
    return []


def _is_forbidden(name):
    return any(name == f or name.startswith(f + ".") for f in _FORBIDDEN_IN_CORE)


def test_core_has_no_io_imports():
    violations = []
    for rel, tree in _iter_trees(_CORE_ROOT):
        for node in ast.walk(tree):
            for name in _imported_names(node):
                if _is_forbidden(name):
                    violations.append(f"core/{rel}:{node.lineno} imports {name}")
            if isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and node.func.id == "open":
                violations.append(f"core/{rel}:{node.lineno} calls open()")
    assert violations == [], "\n".join(violations)


def test_no_function_level_cc_ledger_imports():
    violations = []
    for rel, tree in _iter_trees(_SRC_ROOT):
        for node in ast.walk(tree):
            if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                continue
            for child in ast.walk(node):
                for name in _imported_names(child):
                    if name.startswith("cc_ledger"):
                        violations.append(f"{rel}:{child.lineno} function-level import {name}")
    assert violations == [], "\n".join(violations)
