"""
Local tool subsystem.

Registers plain Python callables (sync or async) under a provider name
and exposes them through the ToolSubsystem contract, the same way an
external MCP bridge would.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

from adapters.tools.base import ToolExecutionError, ToolSpec, ToolSubsystem
from constants import TOOL_NAME_SEPARATOR
from observability.logger import log_event
from services.calendar_service import CALENDAR_TOOLS, CalendarService


ToolFn = Callable[..., Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class _RegisteredTool:
    spec: ToolSpec
    fn: ToolFn


class LocalToolRegistry(ToolSubsystem):
    """
    In-process tool subsystem.

    Rules:
    - Provider names must not contain "_" (qualified-name round trip)
    - Arguments are passed as keyword arguments
    - Sync callables run in a worker thread, coroutines on the loop
    - Any exception raised by a tool surfaces as ToolExecutionError
    """

    def __init__(self) -> None:
        self._providers: dict[str, dict[str, _RegisteredTool]] = {}

    def register(self, provider: str, spec: ToolSpec, fn: ToolFn) -> None:
        if TOOL_NAME_SEPARATOR in provider:
            raise ValueError(
                f"provider name must not contain {TOOL_NAME_SEPARATOR!r}: {provider}"
            )
        self._providers.setdefault(provider, {})[spec.name] = _RegisteredTool(spec, fn)

    def unregister_provider(self, provider: str) -> None:
        self._providers.pop(provider, None)

    # ------------------------------------------------------------------
    # ToolSubsystem
    # ------------------------------------------------------------------

    def list_available(self) -> dict[str, list[ToolSpec]]:
        return {
            provider: [t.spec for t in tools.values()]
            for provider, tools in self._providers.items()
        }

    async def invoke(self, provider: str, tool: str, arguments: dict[str, Any]) -> Any:
        registered = self._providers.get(provider, {}).get(tool)
        if registered is None:
            raise ToolExecutionError(f"unknown tool: {provider}/{tool}")

        try:
            if inspect.iscoroutinefunction(registered.fn):
                result = await registered.fn(**arguments)
            else:
                result = await asyncio.to_thread(registered.fn, **arguments)
            if inspect.isawaitable(result):
                result = await result
        except ToolExecutionError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise ToolExecutionError(f"{type(exc).__name__}: {exc}") from exc

        log_event({
            "level": "DEBUG",
            "event_type": "local_tool_invoked",
            "provider": provider,
            "tool": tool,
        })
        return result


def build_demo_registry(calendar: CalendarService | None = None) -> LocalToolRegistry:
    """Registry with the demo Calendar provider."""
    calendar = calendar or CalendarService()
    registry = LocalToolRegistry()
    handlers: dict[str, ToolFn] = {
        "check_calendar": calendar.check_calendar,
        "book_appointment": calendar.book_appointment,
    }
    for spec in CALENDAR_TOOLS:
        registry.register("Calendar", spec, handlers[spec.name])
    return registry
