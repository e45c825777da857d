"""MCP presentation layer: stdio server, lifespan and tool handlers."""
