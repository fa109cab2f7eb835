"""Tests for MCP tool dispatch and client-facing error rendering."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

from vaultgate.mcp.server import ToolContext, run_tool
from vaultgate.vault import FileCache, GuideCollector, PathGuard


@pytest.fixture()
def vault_root(tmp_path: Path) -> Path:
    vault = tmp_path / "vault"
    (vault / "projects" / "webapp").mkdir(parents=True)
    (vault / "CLAUDE.md").write_text("root instructions")
    (vault / "projects" / "CLAUDE.md").write_text("project instructions")
    (vault / "projects" / "webapp" / "notes.md").write_text("# Notes")
    return vault


@pytest.fixture()
def context(vault_root: Path) -> ToolContext:
    guard = PathGuard(vault_root)
    cache = FileCache()
    return ToolContext(guard=guard, cache=cache, collector=GuideCollector(guard, cache))


class TestGetVaultContext:
    def test_renders_guides(self, context: ToolContext) -> None:
        text = run_tool("get_vault_context", {"path": "projects/webapp"}, context)
        assert text == "--- CLAUDE.md in projects/ ---\nproject instructions"

    def test_no_guides(self, context: ToolContext) -> None:
        text = run_tool("get_vault_context", {"path": "."}, context)
        assert text == "No CLAUDE.md files found along this path."

    def test_traversal_gets_generic_denial(
        self, context: ToolContext, vault_root: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR, logger="vaultgate.mcp.server"):
            text = run_tool("get_vault_context", {"path": "../../etc"}, context)
        assert text == "Error: Path not allowed"
        assert str(vault_root) not in text
        assert "get_vault_context failed" in caplog.text


class TestGetVaultGuide:
    def test_returns_root_guide(self, context: ToolContext) -> None:
        assert run_tool("get_vault_guide", {}, context) == "root instructions"

    def test_missing_root_guide(self, context: ToolContext, vault_root: Path) -> None:
        (vault_root / "CLAUDE.md").unlink()
        assert run_tool("get_vault_guide", {}, context) == "No root CLAUDE.md found in the vault."


class TestVaultRead:
    def test_reads_file(self, context: ToolContext) -> None:
        assert run_tool("vault_read", {"path": "projects/webapp/notes.md"}, context) == "# Notes"

    def test_read_is_cached(self, context: ToolContext) -> None:
        run_tool("vault_read", {"path": "projects/webapp/notes.md"}, context)
        run_tool("vault_read", {"path": "projects/webapp/notes.md"}, context)
        assert context.cache.stats()["hits"] == 1

    def test_missing_file(self, context: ToolContext) -> None:
        text = run_tool("vault_read", {"path": "projects/ghost.md"}, context)
        assert text == "Note not found: projects/ghost.md"

    def test_git_metadata_denied(self, context: ToolContext, vault_root: Path) -> None:
        (vault_root / ".git").mkdir()
        (vault_root / ".git" / "HEAD").write_text("ref: refs/heads/main")
        assert run_tool("vault_read", {"path": ".git/HEAD"}, context) == (
            "Error: Path not allowed"
        )

    def test_symlink_escape_denied(
        self, context: ToolContext, vault_root: Path, tmp_path: Path
    ) -> None:
        secret = tmp_path / "secret.txt"
        secret.write_text("top secret")
        (vault_root / "innocent.md").symlink_to(secret)
        text = run_tool("vault_read", {"path": "innocent.md"}, context)
        assert text == "Error: Path not allowed"

    def test_unexpected_error_is_sanitized(self, context: ToolContext) -> None:
        text = run_tool("vault_read", {}, context)
        assert text.startswith("Error: ")


def test_unknown_tool(context: ToolContext) -> None:
    assert run_tool("nope", {}, context) == "Unknown tool: nope"
