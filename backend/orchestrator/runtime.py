"""
Runtime execution shell for chat turns.

Responsibilities:
- Own the per-turn orchestrator state
- Call the pure reducer
- Consume provider streams (cooperative, cancelable pull loop)
- Execute commands with side effects (tool batch, follow-up request)
- Project turn state onto the conversation's Turn objects
- Notify turn listeners (UI push) after each projection

Non-responsibilities:
- Creating / loading conversations (ChatSession + persistence)
- Transport or rendering
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from adapters.llm.base import LLMAdapter, ProviderRequestError
from adapters.llm.prompts import tools_unsupported_warning
from adapters.tools.base import ToolSelection, ToolSubsystem
from adapters.tools.specs import count_tools, to_provider_tools
from config import AppConfig
from context.conversation import ConversationContext, Turn
from context.serialization import serialize_for_llm
from observability.logger import log_event
from observability.metrics import timed
from orchestrator.cancellation import CancellationError, CancellationToken
from orchestrator.capabilities import DEFAULT_TOOL_SUPPORT_POLICY, ToolSupportPolicy
from orchestrator.commands import (
    ASYNC_COMMAND_TYPES,
    Command,
    ExecuteTools,
    FinalizeTurn,
    LogEvent,
    StartFollowUp,
)
from orchestrator.enums.role import Role
from orchestrator.enums.state import TurnPhase
from orchestrator.events import (
    CancelRequested,
    ContentDelta,
    Event,
    EventType,
    ProviderFailed,
    StreamDone,
    ToolCallsDetected,
    ToolsExecuted,
    TurnSubmitted,
)
from orchestrator.reducer import add_cancellation_marker, reduce
from orchestrator.state_dataclass import TurnState
from orchestrator.tool_execution import ToolExecutionCoordinator


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def mark_turn_cancelled(turn: Turn) -> None:
    """Clear progress flags and append the cancellation marker once."""
    turn.clear_progress()
    turn.content = add_cancellation_marker(turn.content)


@dataclass
class _TurnRun:
    """
    Everything one submitted turn owns while it runs.

    Scoped per turn so a cancelled run that is still unwinding (e.g.
    waiting on an in-flight tool call) can only ever touch its own,
    already-terminal state.
    """
    turn: Turn
    token: CancellationToken
    state: TurnState
    continuation: list[dict[str, Any]] = field(default_factory=list)


class TurnOrchestrator:
    """
    Runtime execution boundary for the turns of one conversation.

    Architectural role:
    Bridge between the pure orchestration layer (reducer + immutable
    TurnState) and the imperative world (provider stream, tool subsystem,
    Turn objects, logging).

    Guarantees:
    - Reducer is called exactly once per event, state is swapped before
      any side effect executes
    - At most one active turn; a second submit is rejected, never queued
    - Every streamed chunk is a suspension point: the cancellation token is
      checked before the chunk is applied
    - Tool calls run sequentially; cancellation takes effect between calls
      and between the batch and the follow-up request
    - The follow-up request never offers tools
    """

    def __init__(
        self,
        *,
        conversation: ConversationContext,
        llm: LLMAdapter,
        tools: ToolSubsystem,
        config: AppConfig | None = None,
        policy: ToolSupportPolicy = DEFAULT_TOOL_SUPPORT_POLICY,
    ) -> None:
        self._conversation = conversation
        self._llm = llm
        self._tools = tools
        self._config = config or AppConfig()
        self._policy = policy
        self._active_run: _TurnRun | None = None
        self._last_run: _TurnRun | None = None
        self._listeners: list[Callable[[Turn], None]] = []

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    @property
    def conversation(self) -> ConversationContext:
        return self._conversation

    @property
    def last_state(self) -> TurnState | None:
        """Reducer state of the most recently submitted turn."""
        return self._last_run.state if self._last_run is not None else None

    @property
    def is_active(self) -> bool:
        return self._conversation.is_active

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def submit(
        self,
        user_text: str,
        selected_tools: Sequence[ToolSelection] | None = None,
    ) -> Turn | None:
        """
        Run one full turn: stream, execute tools, follow up, finalize.

        Returns the assistant Turn, or None if the submit was rejected
        (blank text or a turn already active).
        """
        if not user_text.strip():
            return None
        if self._conversation.is_active:
            log_event({
                "event_type": "submit_rejected",
                "conversation_id": self._conversation.conversation_id,
                "reason": "turn_already_active",
                "active_turn_id": self._conversation.active_turn_id,
            })
            return None

        history = self._conversation.history()
        _, turn, token = self._conversation.begin_turn(user_text)

        available = self._tools.list_available()
        has_tools = count_tools(available) > 0
        model_supports_tools = self._policy.supports_tools(self._llm.model)

        if has_tools and not model_supports_tools:
            self._conversation.append(Turn(
                role=Role.SYSTEM,
                content=tools_unsupported_warning(self._llm.model),
            ))

        messages = serialize_for_llm(
            history=history,
            user_text=user_text,
            system_prompt=self._config.system_prompt,
            developer_mode=self._config.developer_mode,
        )
        provider_tools = (
            to_provider_tools(available, selected_tools)
            if has_tools and model_supports_tools
            else []
        )

        run = _TurnRun(
            turn=turn,
            token=token,
            state=TurnState(turn_id=turn.id),
            continuation=messages,
        )
        self._active_run = run
        self._last_run = run

        try:
            await self._run(run, provider_tools)
        finally:
            # Whatever happened, this run no longer owns the slot
            if self._active_run is run:
                self._active_run = None
            self._conversation.release_turn(turn.id)

        return turn

    def add_listener(self, listener: Callable[[Turn], None]) -> None:
        """Call `listener` with the assistant Turn after every state change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[Turn], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def cancel(self) -> bool:
        """
        Cancel the active turn.

        - Signals the active cancellation token
        - Clears the active-turn slot immediately
        - Marks the active turn (and any other turn still flagged in
          progress) cancelled, appending the marker exactly once

        Idempotent. Returns True if an active turn was cancelled.
        """
        token = self._conversation.cancellation_token
        if token is not None:
            token.cancel()
        self._conversation.release_turn()

        run = self._active_run
        self._active_run = None
        if run is not None:
            run.token.cancel()
            self._apply(run, CancelRequested(
                event_type=EventType.CANCEL_REQUESTED,
                ts_ms=_now_ms(),
            ))

        for stuck in self._conversation.in_progress_turns():
            mark_turn_cancelled(stuck)

        return run is not None

    # ------------------------------------------------------------------
    # Turn driver
    # ------------------------------------------------------------------

    async def _run(self, run: _TurnRun, provider_tools: list[dict[str, Any]]) -> None:
        """Drive one turn until its state is terminal."""
        try:
            pending = deque(self._apply(run, TurnSubmitted(
                event_type=EventType.TURN_SUBMITTED,
                ts_ms=_now_ms(),
            )))
            pending.extend(await self._consume(run, provider_tools))

            while pending:
                cmd = pending.popleft()
                pending.extend(await self._execute_async(run, cmd))

        except (CancellationError, asyncio.CancelledError) as exc:
            self._apply(run, CancelRequested(
                event_type=EventType.CANCEL_REQUESTED,
                ts_ms=_now_ms(),
                reason=run.token.reason,
            ))
            if isinstance(exc, asyncio.CancelledError):
                raise

        except ProviderRequestError as exc:
            self._fail(run, str(exc))

        except Exception as exc:  # pylint: disable=broad-exception-caught
            self._fail(run, f"{type(exc).__name__}: {exc}")

    async def _consume(
        self,
        run: _TurnRun,
        provider_tools: list[dict[str, Any]] | None,
    ) -> tuple[Command, ...]:
        """
        Pull one provider stream to completion or cancellation.

        Returns the async commands emitted by the terminal StreamDone.
        """
        run.token.raise_if_cancelled()

        stream = self._llm.stream_chat(
            list(run.continuation),
            provider_tools or None,
            cancel_token=run.token,
        )

        with timed(
            "llm_stream",
            conversation_id=self._conversation.conversation_id,
            turn_id=run.turn.id,
            details={"phase": run.state.phase.value, "tools": len(provider_tools or ())},
        ) as timer:
            try:
                async for chunk in stream:
                    if run.token.cancelled:
                        # No mutation after cancellation is observed
                        return ()

                    timer.mark("first_chunk")

                    if chunk.content:
                        self._apply(run, ContentDelta(
                            event_type=EventType.CONTENT_DELTA,
                            ts_ms=_now_ms(),
                            delta=chunk.content,
                        ))

                    if chunk.tool_calls:
                        self._apply(run, ToolCallsDetected(
                            event_type=EventType.TOOL_CALLS_DETECTED,
                            ts_ms=_now_ms(),
                            calls=tuple(chunk.tool_calls),
                        ))

                    if chunk.done:
                        break
            finally:
                aclose = getattr(stream, "aclose", None)
                if aclose is not None:
                    await aclose()

        if run.token.cancelled:
            return ()

        return self._apply(run, StreamDone(
            event_type=EventType.STREAM_DONE,
            ts_ms=_now_ms(),
        ))

    async def _execute_async(self, run: _TurnRun, cmd: Command) -> tuple[Command, ...]:
        """Execute one long-running command; returns follow-on commands."""
        if isinstance(cmd, ExecuteTools):
            coordinator = ToolExecutionCoordinator(
                tools=self._tools,
                conversation_id=self._conversation.conversation_id,
            )
            records = await coordinator.execute(
                cmd.calls,
                run.continuation,
                assistant_content=run.state.initial_text,
                cancel_token=run.token,
                turn_id=run.turn.id,
            )
            run.token.raise_if_cancelled()
            return self._apply(run, ToolsExecuted(
                event_type=EventType.TOOLS_EXECUTED,
                ts_ms=_now_ms(),
                records=tuple(records),
            ))

        if isinstance(cmd, StartFollowUp):
            # Tools disabled: no recursive tool loops
            return await self._consume(run, None)

        return ()

    # ------------------------------------------------------------------
    # State application
    # ------------------------------------------------------------------

    def _apply(self, run: _TurnRun, event: Event) -> tuple[Command, ...]:
        """
        Reduce, swap state, project onto the Turn, execute inline commands.

        Returns the commands the driver must await.
        """
        prev = run.state
        new_state, commands = reduce(prev, event)
        run.state = new_state

        if new_state is not prev:
            self._project(new_state, run.turn)
            for listener in list(self._listeners):
                listener(run.turn)

        deferred: list[Command] = []
        for cmd in commands:
            if cmd.command_type in ASYNC_COMMAND_TYPES:
                deferred.append(cmd)
            else:
                self._execute_inline(run, cmd)
        return tuple(deferred)

    def _execute_inline(self, run: _TurnRun, cmd: Command) -> None:
        if isinstance(cmd, LogEvent):
            log_event({
                **cmd.event,
                "conversation_id": self._conversation.conversation_id,
            })

        elif isinstance(cmd, FinalizeTurn):
            run.turn.clear_progress()
            self._conversation.release_turn(run.turn.id)
            if self._active_run is run:
                self._active_run = None

            log_event({
                "ts_ms": _now_ms(),
                "event_type": "turn_finalized",
                "conversation_id": self._conversation.conversation_id,
                "turn_id": run.turn.id,
                "phase": cmd.phase.value,
                "tool_calls": len(run.state.tool_records),
            })

    def _fail(self, run: _TurnRun, reason: str) -> None:
        if run.token.cancelled:
            # Failure caused by / racing with cancellation is not an error
            self._apply(run, CancelRequested(
                event_type=EventType.CANCEL_REQUESTED,
                ts_ms=_now_ms(),
            ))
            return
        self._apply(run, ProviderFailed(
            event_type=EventType.PROVIDER_FAILED,
            ts_ms=_now_ms(),
            reason=reason,
        ))

    @staticmethod
    def _project(state: TurnState, turn: Turn) -> None:
        """Write the reducer's view of the turn onto the shared Turn object."""
        turn.content = state.content
        turn.reasoning_content = state.parsed.reasoning
        turn.is_streaming = not state.is_terminal
        turn.is_reasoning_streaming = state.reasoning_open
        turn.is_executing_tools = state.phase is TurnPhase.EXECUTING_TOOLS
        turn.tool_calls = list(state.tool_records)
