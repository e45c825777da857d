"""MCP Server for the offline-first content cache using stdio transport.

This module implements the Model Context Protocol server that lets AI
agents read cached content, submit writes and manage the offline write
queue through standardized tools.

Transport: stdio
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..logger import setup_logging
from ..sync.coordinator import SyncCoordinator
from .lifespan import server_lifespan
from .tools import ALL_SPECS, ToolRegistry, build_error_response

logger = logging.getLogger(__name__)

# Initialize server instance
server = Server("content-cache-mcp")

# Global coordinator instance (initialized in lifespan)
_coordinator: SyncCoordinator | None = None

# Global registry instance (initialized in main)
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_coordinator() -> SyncCoordinator:
    """Get the global SyncCoordinator instance.

    Raises:
        RuntimeError: If coordinator is not initialized
    """
    if _coordinator is None:
        raise RuntimeError(
            "SyncCoordinator not initialized. Server lifespan not started."
        )
    return _coordinator


def set_coordinator(coordinator: SyncCoordinator | None) -> None:
    """Set the global SyncCoordinator instance, or None to clear."""
    global _coordinator
    _coordinator = coordinator


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    """Set the global ToolRegistry instance, or None to clear."""
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available content cache tools."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch.

    Args:
        name: The name of the tool to execute.
        arguments: Tool arguments (optional).

    Returns:
        CallToolResult with tool output content and optional isError flag.
    """
    coordinator = get_coordinator()
    try:
        return await get_registry().call_tool(name, arguments, coordinator)
    except ValueError as e:
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Sets up logging for MCP mode (file only, never stdout), builds the
    coordinator via the lifespan manager, and serves JSON-RPC over stdio.

    Args:
        config_overrides: Optional dict with config values to override
            (url, token, mode, backend, insecure, debug, log_file)
    """
    overrides = config_overrides or {}

    # Must run before stdio_server so nothing reaches stdout
    setup_logging(
        mode="mcp",
        debug=overrides.get("debug", False),
        log_file=overrides.get("log_file"),
    )

    async with server_lifespan(config_overrides=config_overrides) as ctx:
        coordinator: SyncCoordinator = ctx["coordinator"]
        registry = ToolRegistry(
            ALL_SPECS, read_only=not coordinator.gate.can_write
        )
        logger.info(
            "Registered %d tools (of %d total)",
            registry.tool_count(),
            len(ALL_SPECS),
        )
        set_registry(registry)
        # Set here, not in the lifespan: under `python -m` this module is
        # __main__ and a re-import would hold a second _coordinator.
        set_coordinator(coordinator)
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="content-cache-mcp",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_coordinator(None)
            set_registry(None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="content-cache-mcp",
        description="Content Cache MCP Server - offline-first cache for a GraphQL content source",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (from .env or .content_cache/config.yml)
  content-cache-mcp

  # Point at an endpoint and allow writes
  content-cache-mcp --url https://cms.example.com/graphql --mode SETMODE

  # Keep the snapshot in SQLite
  content-cache-mcp --backend SQLITEDB

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr. Do not pipe stdin/stdout manually.
        """,
    )

    parser.add_argument(
        "--url",
        help="Override GraphQL endpoint (takes precedence over CONTENT_CACHE_GRAPHQL_URL and config files)",
    )
    parser.add_argument(
        "--token",
        help="Override bearer token (visible in process list -- prefer CONTENT_CACHE_AUTH_TOKEN)",
    )
    parser.add_argument(
        "--mode",
        help="Operating mode: GETMODE, SETMODE or CRUDMODE (default: GETMODE)",
    )
    parser.add_argument(
        "--backend",
        help="Storage backend: JSONDB, SQLITEDB, MEMORYDB or FALSE (default: JSONDB)",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Log file path (default: /tmp/content-cache-mcp.log)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"content-cache-mcp version {__version__}",
    )
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict:
    """Collect the CLI arguments that were actually given."""
    overrides = {}
    for key in ("url", "token", "mode", "backend", "log_file"):
        value = getattr(args, key)
        if value:
            overrides[key] = value
    if args.insecure:
        overrides["insecure"] = True
    if args.debug:
        overrides["debug"] = True
    return overrides


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args()
    config_overrides = overrides_from_args(args)

    if config_overrides:
        shown = [k for k in config_overrides if k != "token"]
        print(
            f"Config overrides from CLI: {', '.join(shown) or 'token'}",
            file=sys.stderr,
        )

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
