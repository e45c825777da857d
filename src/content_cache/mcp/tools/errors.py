"""Error responses and result builders shared by the MCP tool handlers.

Every non-success outcome is returned as a structured error with a
corrective action so an agent can recover without human intervention.
``queued`` is a success: the write will be replayed later.
"""

from typing import Any

import mcp.types as types

from ...sync.models import Outcome


def build_error_response(
    error_type: str,
    message: str,
    corrective_action: str,
    structured: dict[str, Any] | None = None,
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (an outcome tag, validation_error,
            unknown_tool or server_error).
        message: Human-readable error description.
        corrective_action: Specific action the agent can take next.
        structured: Optional ``structuredContent`` payload.

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("write_forbidden", "Writes are not allowed in GETMODE", "Restart with GRAPHQL_MODE=SETMODE.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        structuredContent=structured,
        isError=True,
    )


def build_text_response(
    text: str, structured: dict[str, Any] | None = None
) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


_CORRECTIVE_ACTIONS: dict[Outcome, str] = {
    Outcome.REJECTED: "Fix the input according to the remote errors and resubmit.",
    Outcome.WRITE_FORBIDDEN: "Restart the server with GRAPHQL_MODE=SETMODE or CRUDMODE to allow writes.",
    Outcome.REMOTE_UNAVAILABLE: "Check CONTENT_CACHE_GRAPHQL_URL and network connectivity, then retry.",
    Outcome.PERSIST_FAILURE: "Check CONTENT_CACHE_BACKEND and that the data paths are writable.",
    Outcome.NOT_FOUND: "Use queue_list to see current entry ids.",
    Outcome.EMPTY: "Run content_pull while the remote is reachable to fill the cache.",
    Outcome.UNAVAILABLE: "Enable a storage backend (CONTENT_CACHE_BACKEND) or check the data files.",
    Outcome.FAILED: "Check the server log for details and retry.",
}

SUCCESS_OUTCOMES = frozenset({Outcome.OK, Outcome.APPLIED, Outcome.QUEUED})


def outcome_response(
    outcome: Outcome,
    text: str,
    structured: dict[str, Any],
) -> types.CallToolResult:
    """Translate a coordinator outcome into a tool result.

    Success outcomes return *text*; anything else becomes an error response
    whose type is the outcome tag.
    """
    if outcome in SUCCESS_OUTCOMES:
        return build_text_response(text, structured)
    return build_error_response(
        outcome.value,
        text,
        _CORRECTIVE_ACTIONS.get(outcome, _CORRECTIVE_ACTIONS[Outcome.FAILED]),
        structured,
    )
