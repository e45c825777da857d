"""MCP tool handlers for the content cache.

This package contains MCP tool implementations that wrap the
SyncCoordinator with async handlers and structured error responses.
"""

from .content import CONTENT_SPECS
from .errors import build_error_response, outcome_response
from .queue import QUEUE_SPECS
from .registry import ToolRegistry, ToolSpec
from .system import SYSTEM_SPECS

ALL_SPECS: list[ToolSpec] = SYSTEM_SPECS + CONTENT_SPECS + QUEUE_SPECS

__all__ = [
    "build_error_response",
    "outcome_response",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    # Spec lists
    "ALL_SPECS",
    "CONTENT_SPECS",
    "QUEUE_SPECS",
    "SYSTEM_SPECS",
]
