"""MCP surface for the Claude Code bridge."""
