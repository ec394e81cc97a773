"""
Qualified tool-name codec.

A qualified name carries both the providing tool source and the tool:

    encode_tool_name("Slack", "channel_get_history") -> "Slack_channel_get_history"

Decoding splits on the FIRST separator only, so provider names must not
contain it while tool names may.
"""

from __future__ import annotations

from constants import TOOL_NAME_SEPARATOR


class CodecError(ValueError):
    """Qualified tool name that did not come from encode_tool_name()."""


def encode_tool_name(provider: str, tool: str) -> str:
    """Join provider and tool into a qualified tool name."""
    return f"{provider}{TOOL_NAME_SEPARATOR}{tool}"


def decode_tool_name(qualified_name: str) -> tuple[str, str]:
    """
    Split a qualified tool name into (provider, tool).

    Raises:
        CodecError if the name contains no separator.
    """
    provider, sep, tool = qualified_name.partition(TOOL_NAME_SEPARATOR)
    if not sep:
        raise CodecError(
            f"Invalid tool name format: {qualified_name}. "
            "Expected format: serverName_toolName"
        )
    return provider, tool
