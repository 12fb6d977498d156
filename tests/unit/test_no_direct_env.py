"""Environment access policy.

`core/config/base.py` is the only module that touches the process
environment; everything else reads settings through `get_core_config()`.
Every variable the config layer reads carries the `CONTEXTINGEST_` prefix.
"""

from __future__ import annotations

import ast
from pathlib import Path

import pytest

from contextingest.core.config.base import ENV_PREFIX, get_bool_env, get_env, get_int_env

_PKG_ROOT = Path(__file__).resolve().parents[2] / "src" / "contextingest"
_ENV_READER = _PKG_ROOT / "core" / "config" / "base.py"

# Modules that may import `os` at all, and why they need it.
_OS_IMPORTERS = {
    "core/config/base.py",  # environment access
    "modules/storage/filesystem.py",  # os.replace for atomic writes
}


def _tree(path: Path) -> ast.AST:
    return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))


def _imports_os(tree: ast.AST) -> bool:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import) and any(a.name == "os" for a in node.names):
            return True
        if isinstance(node, ast.ImportFrom) and node.module == "os":
            return True
    return False


def _env_touches(tree: ast.AST) -> list[int]:
    """Lines that reference `os.environ`, `os.getenv` or `os.putenv`."""
    lines = []
    for node in ast.walk(tree):
        if (
            isinstance(node, ast.Attribute)
            and node.attr in {"environ", "getenv", "putenv"}
            and isinstance(node.value, ast.Name)
            and node.value.id == "os"
        ):
            lines.append(node.lineno)
    return lines


def _env_names_read(tree: ast.AST) -> list[str]:
    """Literal variable names passed to the get_*_env helpers."""
    names = []
    for node in ast.walk(tree):
        if not (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Name)
            and node.func.id in {"get_env", "get_bool_env", "get_int_env"}
            and node.args
        ):
            continue
        arg = node.args[0]
        if isinstance(arg, ast.JoinedStr):
            names.append("".join(_fstring_part(v) for v in arg.values))
        elif isinstance(arg, ast.Constant):
            names.append(str(arg.value))
    return names


def _fstring_part(node: ast.AST) -> str:
    if isinstance(node, ast.FormattedValue) and isinstance(node.value, ast.Name):
        return "{" + node.value.id + "}"
    if isinstance(node, ast.Constant):
        return str(node.value)
    return "?"


def _modules() -> list[Path]:
    return sorted(_PKG_ROOT.rglob("*.py"))


# ============================================================================
# Source policy
# ============================================================================


class TestSourcePolicy:
    def test_only_base_touches_environment(self):
        offenders = [
            f"{path.relative_to(_PKG_ROOT)}:{line}"
            for path in _modules()
            if path != _ENV_READER
            for line in _env_touches(_tree(path))
        ]
        assert offenders == []

    def test_os_imports_are_accounted_for(self):
        importers = {
            path.relative_to(_PKG_ROOT).as_posix()
            for path in _modules()
            if _imports_os(_tree(path))
        }
        assert importers == _OS_IMPORTERS

    def test_every_env_read_is_prefixed(self):
        names = [n for path in _modules() for n in _env_names_read(_tree(path))]
        assert names, "config layer reads no environment variables"
        assert all(n.startswith("{ENV_PREFIX}") for n in names), names

    def test_prefix(self):
        assert ENV_PREFIX == "CONTEXTINGEST_"


# ============================================================================
# Helpers
# ============================================================================


class TestEnvHelpers:
    def test_get_env_strips_and_defaults(self, monkeypatch):
        monkeypatch.setenv("CONTEXTINGEST_X", "  value  ")
        monkeypatch.setenv("CONTEXTINGEST_BLANK", "   ")
        assert get_env("CONTEXTINGEST_X") == "value"
        assert get_env("CONTEXTINGEST_BLANK", "fallback") == "fallback"
        assert get_env("CONTEXTINGEST_UNSET") is None

    @pytest.mark.parametrize(
        "raw,expected",
        [("1", True), ("Yes", True), (" on ", True), ("0", False), ("off", False), ("n", False)],
    )
    def test_get_bool_env(self, monkeypatch, raw, expected):
        monkeypatch.setenv("CONTEXTINGEST_FLAG", raw)
        assert get_bool_env("CONTEXTINGEST_FLAG") is expected

    def test_get_bool_env_unknown_uses_default(self, monkeypatch):
        monkeypatch.setenv("CONTEXTINGEST_FLAG", "maybe")
        assert get_bool_env("CONTEXTINGEST_FLAG") is None
        assert get_bool_env("CONTEXTINGEST_FLAG", True) is True

    def test_get_int_env(self, monkeypatch):
        monkeypatch.setenv("CONTEXTINGEST_N", " 12 ")
        assert get_int_env("CONTEXTINGEST_N") == 12

    def test_get_int_env_invalid_or_blank(self, monkeypatch):
        monkeypatch.setenv("CONTEXTINGEST_N", "twelve")
        assert get_int_env("CONTEXTINGEST_N", 4) == 4
        monkeypatch.setenv("CONTEXTINGEST_N", "")
        assert get_int_env("CONTEXTINGEST_N") is None
