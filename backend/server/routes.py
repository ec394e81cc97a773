"""
Route registration for the chat API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Translate request bodies into ChatSession calls
- Pull dependencies from app.state
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, ValidationError

from adapters.tools.base import ToolSelection
from context.catalog import ConversationSummary, TitleUpdated
from context.conversation import Turn
from observability.logger import log_event
from session.chat_session import ChatSession
from session.persistence import ConversationNotFound


class ToolSelectionBody(BaseModel):
    provider: str
    tool: str | None = None


class MessageBody(BaseModel):
    text: str
    tools: list[ToolSelectionBody] | None = Field(default=None)


class TitleBody(BaseModel):
    title: str


def _summary_to_dict(summary: ConversationSummary) -> dict[str, Any]:
    return {
        "id": summary.id,
        "title": summary.title,
        "model": summary.model,
        "created_at": summary.created_at,
        "updated_at": summary.updated_at,
    }


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""

    def _session() -> ChatSession:
        return app.state.session

    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    @app.post("/chat/messages")
    async def send_message(body: MessageBody) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        session = _session()
        if not body.text.strip():
            raise HTTPException(status_code=400, detail="empty_message")
        if session.conversation.is_active:
            raise HTTPException(status_code=409, detail="turn_already_active")

        turn = await session.send_message(body.text, _selection(body))
        if turn is None:
            raise HTTPException(status_code=409, detail="turn_rejected")

        return {
            "conversation_id": session.current_conversation_id,
            "turn": turn.to_dict(),
        }

    @app.post("/chat/cancel")
    async def cancel() -> dict[str, bool]: # pyright: ignore[reportUnusedFunction]
        return {"cancelled": _session().cancel()}

    @app.get("/chat/turns")
    async def turns() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        session = _session()
        return {
            "conversation_id": session.current_conversation_id,
            "active_turn_id": session.conversation.active_turn_id,
            "turns": [t.to_dict() for t in session.turns],
        }

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    @app.get("/conversations")
    async def list_conversations() -> list[dict[str, Any]]: # pyright: ignore[reportUnusedFunction]
        session = _session()
        await session.drain_title_updates()
        return [_summary_to_dict(s) for s in session.summaries]

    @app.post("/conversations")
    async def create_conversation() -> dict[str, int]: # pyright: ignore[reportUnusedFunction]
        return {"id": await _session().create_conversation()}

    @app.post("/conversations/{conversation_id}/select")
    async def select_conversation(conversation_id: int) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        try:
            loaded = await _session().select_conversation(conversation_id)
        except ConversationNotFound as exc:
            raise HTTPException(status_code=404, detail="conversation_not_found") from exc
        return {"id": conversation_id, "turns": [t.to_dict() for t in loaded]}

    @app.delete("/conversations/current")
    async def delete_current() -> dict[str, int | None]: # pyright: ignore[reportUnusedFunction]
        return {"current_id": await _session().delete_current_conversation()}

    @app.post("/conversations/{conversation_id}/title")
    async def push_title(conversation_id: int, body: TitleBody) -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        _session().publish_title_update(
            TitleUpdated(conversation_id=conversation_id, title=body.title)
        )
        log_event({
            "event_type": "title_update_received",
            "conversation_id": conversation_id,
        })
        return {"status": "queued"}

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    @app.websocket("/ws/chat")
    async def chat_socket(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        """
        Push a TURN_UPDATE snapshot after every turn state change.

        Inbound:  {"type": "SEND", "text": ..., "tools"?: [...]} | {"type": "CANCEL"}
        Outbound: TURN_UPDATE | TURN_REJECTED | CANCELLED | ERROR
        """
        await ws.accept()
        session = _session()
        outbound: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        running: set[asyncio.Task[None]] = set()

        def on_turn_update(turn: Turn) -> None:
            outbound.put_nowait({
                "type": "TURN_UPDATE",
                "conversation_id": session.current_conversation_id,
                "turn": turn.to_dict(),
            })

        async def send_loop() -> None:
            while True:
                await ws.send_text(json.dumps(await outbound.get()))

        async def run_turn(body: MessageBody) -> None:
            turn = await session.send_message(body.text, _selection(body))
            if turn is None:
                outbound.put_nowait({"type": "TURN_REJECTED"})

        session.orchestrator.add_listener(on_turn_update)
        sender = asyncio.create_task(send_loop())

        try:
            while True:
                data = json.loads(await ws.receive_text())
                kind = data.get("type")

                if kind == "SEND":
                    try:
                        body = MessageBody.model_validate(data)
                    except ValidationError:
                        outbound.put_nowait({"type": "ERROR", "reason": "invalid_message"})
                        continue
                    task = asyncio.create_task(run_turn(body))
                    running.add(task)
                    task.add_done_callback(running.discard)

                elif kind == "CANCEL":
                    outbound.put_nowait({"type": "CANCELLED", "cancelled": session.cancel()})

                else:
                    outbound.put_nowait({"type": "ERROR", "reason": "unknown_message_type"})

        except WebSocketDisconnect:
            log_event({
                "event_type": "chat_socket_disconnected",
                "conversation_id": session.current_conversation_id,
            })

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "WS_FATAL_ERROR",
                "level": "ERROR",
                "conversation_id": session.current_conversation_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })

        finally:
            session.orchestrator.remove_listener(on_turn_update)
            session.cancel()
            pending = running | {sender}
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)


def _selection(body: MessageBody) -> list[ToolSelection] | None:
    if not body.tools:
        return None
    return [ToolSelection(provider=t.provider, tool=t.tool) for t in body.tools]
