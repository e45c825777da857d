"""ToolSpec and ToolRegistry for MCP tool dispatch.

Key concepts:
- ToolSpec: Immutable dataclass linking a Tool definition and an async
  handler with standardized signature (coordinator, args) -> CallToolResult.
- ToolRegistry: Indexes specs by name, then provides list_tools() and
  call_tool() dispatch with error translation.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import mcp.types as types
from pydantic import ValidationError

from ...sync.coordinator import SyncCoordinator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Immutable specification for a single MCP tool.

    Attributes:
        tool: The MCP Tool definition (name, description, inputSchema).
        writes: Whether the tool changes remote or queued state.  Write
            tools are hidden from ``list_tools`` in read-only mode.
        handler: Async handler with signature (coordinator, args) -> CallToolResult.
    """

    tool: types.Tool
    handler: Callable[[SyncCoordinator, dict], Awaitable[types.CallToolResult]]
    writes: bool = False


class ToolRegistry:
    """Registry of ToolSpecs.

    With ``read_only=True`` write tools are left out of ``list_tools()``;
    they stay callable so a direct call still gets the ``write_forbidden``
    outcome from the coordinator.
    """

    def __init__(self, specs: list[ToolSpec], read_only: bool = False):
        self._specs: dict[str, ToolSpec] = {}
        self._read_only = read_only
        for spec in specs:
            if spec.tool.name in self._specs:
                raise ValueError(f"Duplicate tool name: {spec.tool.name}")
            self._specs[spec.tool.name] = spec

    def list_tools(self) -> list[types.Tool]:
        """Return list of types.Tool for all visible specs."""
        return [
            spec.tool
            for spec in self._specs.values()
            if not (self._read_only and spec.writes)
        ]

    def tool_count(self) -> int:
        """Return number of visible tools."""
        return len(self.list_tools())

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        coordinator: SyncCoordinator,
    ) -> types.CallToolResult:
        """Dispatch tool call to registered handler.

        Validation errors and unexpected exceptions are translated into
        structured CallToolResult responses with corrective actions.

        Args:
            name: Tool name to invoke.
            arguments: Tool arguments (may be None).
            coordinator: SyncCoordinator instance.

        Returns:
            CallToolResult from the handler.

        Raises:
            ValueError: If tool name is not registered.
        """
        from .errors import build_error_response

        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown tool: {name}")
        args = arguments or {}
        try:
            return await spec.handler(coordinator, args)
        except ValidationError as e:
            return build_error_response(
                "validation_error",
                _validation_summary(e),
                "Check parameter values and retry.",
            )
        except ValueError as e:
            return build_error_response(
                "validation_error",
                str(e),
                "Check parameter values and retry.",
            )
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return build_error_response(
                "server_error",
                str(e),
                "Check the server log and retry later.",
            )


def _validation_summary(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "input"
        parts.append(f"{location}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)
