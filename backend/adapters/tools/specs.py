"""
Tool spec conversion for provider requests.

Turns the tool subsystem catalog into OpenAI-style function tools whose
names are qualified (provider + tool), so the model echoes back a name
the coordinator can route.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from adapters.tools.base import ToolSelection, ToolSpec
from constants import TOOL_DESCRIPTION_FALLBACK
from orchestrator.tool_names import encode_tool_name


def to_provider_tool(provider: str, spec: ToolSpec) -> dict[str, Any]:
    """One ToolSpec -> provider function-tool definition."""
    return {
        "type": "function",
        "function": {
            "name": encode_tool_name(provider, spec.name),
            "description": spec.description or TOOL_DESCRIPTION_FALLBACK.format(provider=provider),
            "parameters": spec.input_schema,
        },
    }


def to_provider_tools(
    available: Mapping[str, Sequence[ToolSpec]],
    selected: Sequence[ToolSelection] | None = None,
) -> list[dict[str, Any]]:
    """
    Convert the available-tools mapping into provider tool definitions.

    Rules:
    - Provider order, then tool order, is preserved
    - Providers with no tools contribute nothing
    - With a non-empty `selected`, only selected tools are included
      (a selection naming a whole provider includes all its tools)
    """
    tools: list[dict[str, Any]] = []
    for provider, specs in available.items():
        for spec in specs:
            if selected and not _is_selected(provider, spec.name, selected):
                continue
            tools.append(to_provider_tool(provider, spec))
    return tools


def count_tools(available: Mapping[str, Sequence[ToolSpec]]) -> int:
    return sum(len(specs) for specs in available.values())


def _is_selected(provider: str, tool: str, selected: Sequence[ToolSelection]) -> bool:
    return any(
        s.provider == provider and (s.tool is None or s.tool == tool)
        for s in selected
    )
