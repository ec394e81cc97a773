"""
Tool subsystem contract.

Purpose:
- Define the interface the orchestrator uses to discover and invoke
  external tools (MCP servers, local plugins, ...).
- Define the ToolSpec value type describing one tool.

Rules:
- This file contains NO logic.
- Installing, starting and cataloguing tool plugins is NOT part of
  this contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class ToolExecutionError(Exception):
    """A tool invocation failed. Captured per call, never re-raised."""


@dataclass(frozen=True)
class ToolSpec:
    """One tool as advertised by its provider."""
    name: str
    description: str | None = None
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


@dataclass(frozen=True)
class ToolSelection:
    """
    Caller-selected tool scope.

    tool=None selects every tool of `provider`.
    """
    provider: str
    tool: str | None = None


class ToolSubsystem(ABC):
    """
    Abstract base class for tool subsystems.

    Contract:
    - list_available() is cheap and side-effect free.
    - invoke() either returns a result (str or JSON-serializable value)
      or raises ToolExecutionError. Other exceptions are treated as
      failures of that call by the caller.
    - invoke() is never called concurrently by the orchestrator.
    """

    @abstractmethod
    def list_available(self) -> dict[str, list[ToolSpec]]:
        """Mapping provider -> tools currently available."""
        raise NotImplementedError

    @abstractmethod
    async def invoke(
        self,
        provider: str,
        tool: str,
        arguments: dict[str, Any],
    ) -> Any:
        """Invoke one tool of one provider."""
        raise NotImplementedError
