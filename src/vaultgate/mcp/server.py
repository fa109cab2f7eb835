"""MCP server — exposes vault guides and confined reads as MCP tools.

Usage:
    vaultgate mcp-serve

Requires: pip install vaultgate[mcp]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from vaultgate.sanitize import MAX_ERROR_LENGTH, client_error_message
from vaultgate.vault.guides import render_guides

if TYPE_CHECKING:
    from vaultgate.vault.file_cache import FileCache
    from vaultgate.vault.guides import GuideCollector
    from vaultgate.vault.security import PathGuard

logger = logging.getLogger(__name__)


@dataclass
class ToolContext:
    """Shared state handed to every tool call."""

    guard: PathGuard
    cache: FileCache
    collector: GuideCollector
    max_error_length: int = MAX_ERROR_LENGTH


def create_mcp_server(context: ToolContext, name: str = "vaultgate") -> Any:
    """Create and configure the MCP server with vault tools.

    Returns an MCP Server instance ready to run.
    """
    from mcp.server import Server
    from mcp.types import TextContent, Tool

    guide = context.collector.guide_filename
    server = Server(name, instructions=context.collector.load_root_guide())

    @server.list_tools()  # type: ignore[misc,untyped-decorator,unused-ignore]
    async def list_tools() -> list[Tool]:
        return [
            Tool(
                name="get_vault_context",
                description=(
                    f"Returns {guide} instruction files found along the path from vault root"
                    " to the specified directory. Use before working in a vault subdirectory."
                    f" The root {guide} (already provided as server instructions) is excluded."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "path": {
                            "type": "string",
                            "description": (
                                "Vault-relative directory path (e.g. 'projects/webapp')"
                            ),
                        },
                    },
                    "required": ["path"],
                },
            ),
            Tool(
                name="get_vault_guide",
                description=f"Returns the root {guide} of the vault.",
                inputSchema={"type": "object", "properties": {}},
            ),
            Tool(
                name="vault_read",
                description="Read the full content of a file by its path relative to vault root.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "path": {
                            "type": "string",
                            "description": "File path relative to vault root",
                        },
                    },
                    "required": ["path"],
                },
            ),
        ]

    @server.call_tool()  # type: ignore[misc,untyped-decorator,unused-ignore]
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        return [TextContent(type="text", text=run_tool(name, arguments or {}, context))]

    return server


def run_tool(name: str, args: dict[str, Any], context: ToolContext) -> str:
    """Run a tool and render its result, or its failure, as client-safe text."""
    try:
        return _dispatch_tool(name, args, context)
    except Exception as e:
        logger.exception("Tool %s failed", name)
        return f"Error: {client_error_message(e, max_length=context.max_error_length)}"


def _dispatch_tool(name: str, args: dict[str, Any], context: ToolContext) -> str:
    """Route tool calls to the appropriate handler."""
    guide = context.collector.guide_filename

    if name == "get_vault_context":
        entries = context.collector.collect(args["path"])
        return render_guides(entries, guide)

    elif name == "get_vault_guide":
        content = context.collector.load_root_guide()
        if content is None:
            return f"No root {guide} found in the vault."
        return content

    elif name == "vault_read":
        filepath = context.guard.resolve(args["path"])
        content = context.cache.read_optional(filepath)
        if content is None:
            return f"Note not found: {context.guard.relative(filepath)}"
        return content

    else:
        return f"Unknown tool: {name}"
