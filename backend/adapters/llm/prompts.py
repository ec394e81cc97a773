"""
User-facing prompt and notice texts.

The provider system prompt itself is configuration (developer mode);
this module only holds the fixed texts the orchestrator emits.
"""

from __future__ import annotations

from constants import (
    ERROR_CONTENT_PREFIX,
    RECOMMENDED_TOOL_MODEL,
    UNKNOWN_ERROR_MESSAGE,
)


TOOLS_UNSUPPORTED_WARNING: str = (
    "⚠️ MCP tools are available but {model} doesn't support tool calling. "
    "Consider using {recommended} or another tool-enabled model."
)


def tools_unsupported_warning(model: str) -> str:
    """Notice shown when tools exist but the selected model can't call them."""
    return TOOLS_UNSUPPORTED_WARNING.format(
        model=model,
        recommended=RECOMMENDED_TOOL_MODEL,
    )


def provider_error_content(message: str) -> str:
    """Assistant content replacing a turn whose provider request failed."""
    return f"{ERROR_CONTENT_PREFIX}{message or UNKNOWN_ERROR_MESSAGE}"
