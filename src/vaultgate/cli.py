"""CLI entry point for VaultGate.

Commands:
    vaultgate check-path  — Show where a vault-relative path resolves
    vaultgate context     — Print the guide files along a directory path
    vaultgate read        — Print a file through the confined, cached reader
    vaultgate mcp-serve   — Start the MCP server
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from vaultgate import __version__

if TYPE_CHECKING:
    from vaultgate.config import Settings
    from vaultgate.mcp.server import ToolContext

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool, level_name: str = "INFO") -> None:
    level = logging.DEBUG if verbose else logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
        force=True,
    )


def _load(ctx: click.Context) -> Settings:
    from pydantic import ValidationError

    from vaultgate.config import load_settings

    try:
        settings = load_settings(ctx.obj.get("config_path"))
    except ValidationError as e:
        console.print(f"[red]✗[/red] Invalid configuration:\n{escape(str(e))}")
        sys.exit(1)
    _setup_logging(ctx.obj.get("verbose", False), settings.log_level)
    return settings


def _create_context(settings: Settings) -> ToolContext:
    """Wire guard, cache and collector from settings."""
    from vaultgate.mcp.server import ToolContext
    from vaultgate.vault import FileCache, GuideCollector, PathGuard

    guard = PathGuard(settings.vault.path, settings.vault.blocked_names)
    cache = FileCache(
        max_entries=settings.cache.max_entries,
        max_file_size=settings.cache.max_file_size,
    )
    collector = GuideCollector(guard, cache, settings.vault.guide_filename)
    return ToolContext(
        guard=guard,
        cache=cache,
        collector=collector,
        max_error_length=settings.errors.max_message_length,
    )


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-c", "--config", type=click.Path(exists=True), help="Config file path")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str | None) -> None:
    """VaultGate — confined vault access for AI agents."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = Path(config) if config else None


@cli.command("check-path")
@click.argument("path")
@click.pass_context
def check_path(ctx: click.Context, path: str) -> None:
    """Resolve PATH against the vault root, or report the denial."""
    from vaultgate.errors import PathEscapeError

    context = _create_context(_load(ctx))
    try:
        resolved = context.guard.resolve(path)
    except PathEscapeError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        sys.exit(1)
    console.print(f"[green]✓[/green] {escape(context.guard.relative(resolved))}")


@cli.command()
@click.argument("path")
@click.pass_context
def context(ctx: click.Context, path: str) -> None:
    """Print the guide files from the vault root down to PATH."""
    from vaultgate.mcp.server import run_tool

    tool_context = _create_context(_load(ctx))
    text = run_tool("get_vault_context", {"path": path}, tool_context)
    console.print(escape(text))
    if text.startswith("Error:"):
        sys.exit(1)


@cli.command()
@click.argument("path")
@click.pass_context
def read(ctx: click.Context, path: str) -> None:
    """Print a vault file through the confined reader."""
    from vaultgate.mcp.server import run_tool

    tool_context = _create_context(_load(ctx))
    text = run_tool("vault_read", {"path": path}, tool_context)
    console.print(escape(text))
    if text.startswith("Error:"):
        sys.exit(1)


@cli.command("mcp-serve")
@click.pass_context
def mcp_serve(ctx: click.Context) -> None:
    """Start the MCP server for agent integration."""
    from vaultgate.mcp.server import create_mcp_server

    settings = _load(ctx)
    if not settings.mcp.enabled:
        console.print("[yellow]![/yellow] MCP server disabled (VAULTGATE_MCP__ENABLED=false)")
        sys.exit(1)

    server = create_mcp_server(_create_context(settings), name=settings.mcp.name)

    err_console.print("[green]✓[/green] MCP server starting...")

    from mcp.server.stdio import stdio_server

    asyncio.run(_run_mcp(server, stdio_server))


async def _run_mcp(server: object, stdio_server: object) -> None:
    """Run MCP server with stdio transport."""
    async with stdio_server() as (read, write):  # type: ignore[operator]
        init_opts = server.create_initialization_options()  # type: ignore[attr-defined]
        await server.run(read, write, init_opts)  # type: ignore[attr-defined]


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
