"""
Model tool-calling capability policy.

There is no capability-discovery API shared by all models, so whether to
advertise tools is decided by a static table of model-name substrings.
The table lives in an object so callers can extend or replace it without
touching orchestration code.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from constants import (
    TOOL_CAPABLE_MODEL_EXCLUSIONS,
    TOOL_CAPABLE_MODEL_PATTERNS,
)


@dataclass(frozen=True)
class ToolSupportPolicy:
    """
    Name-pattern heuristic for tool-calling support.

    patterns:
        Substrings that mark a model as tool-capable.
    exclusions:
        (pattern, disqualifiers) pairs: the model is tool-capable when it
        contains `pattern` and none of `disqualifiers`.
    """

    patterns: tuple[str, ...] = TOOL_CAPABLE_MODEL_PATTERNS
    exclusions: tuple[tuple[str, tuple[str, ...]], ...] = field(
        default=TOOL_CAPABLE_MODEL_EXCLUSIONS
    )

    def supports_tools(self, model_name: str) -> bool:
        name = model_name.lower()

        if any(pattern in name for pattern in self.patterns):
            return True

        return any(
            pattern in name and not any(bad in name for bad in disqualifiers)
            for pattern, disqualifiers in self.exclusions
        )

    def extended(self, *patterns: str) -> ToolSupportPolicy:
        """Return a copy that also accepts `patterns` (lowercased)."""
        return ToolSupportPolicy(
            patterns=self.patterns + tuple(p.lower() for p in patterns),
            exclusions=self.exclusions,
        )


DEFAULT_TOOL_SUPPORT_POLICY = ToolSupportPolicy()


def supports_tools(model_name: str) -> bool:
    """Apply the default policy."""
    return DEFAULT_TOOL_SUPPORT_POLICY.supports_tools(model_name)
