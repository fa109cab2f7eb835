"""MCP tool surface for the vault."""
