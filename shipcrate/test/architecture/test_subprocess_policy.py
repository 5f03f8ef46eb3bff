from __future__ import annotations

import ast

from ._utils import iter_source_files, package_root, parse_imports, read_tree


def _has_direct_subprocess_call(tree: ast.AST) -> list[int]:
    lines: list[int] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        func = node.func
        if not isinstance(func, ast.Attribute):
            continue
        if func.attr not in {"run", "call", "check_call", "check_output", "Popen"}:
            continue
        if not isinstance(func.value, ast.Name):
            continue
        if func.value.id != "subprocess":
            continue
        lines.append(node.lineno)
    return lines


ALLOWLIST = {"platform/process.py"}


def test_direct_subprocess_usage_is_constrained_to_allowlist() -> None:
    root = package_root()

    offenders: list[str] = []
    for file_path in iter_source_files():
        rel = file_path.relative_to(root)
        if rel.as_posix() in ALLOWLIST:
            continue

        for line in _has_direct_subprocess_call(read_tree(file_path)):
            offenders.append(f"{rel}:{line}: direct subprocess call outside allowlist")
        for item in parse_imports(file_path):
            if item.module == "subprocess":
                offenders.append(f"{rel}:{item.line}: subprocess import outside allowlist")

    assert not offenders, "Subprocess policy violations:\n" + "\n".join(offenders)
