"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware
- Build the chat session (LLM adapter, tool subsystem, store)
- Run the title-update consumer for the app's lifetime
- Register routes
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.llm.base import LLMAdapter
from adapters.llm.streaming import OpenAIChatAdapter, build_llm_client
from adapters.tools.base import ToolSubsystem
from config import AppConfig
from observability.logger import set_min_level
from server.routes import register_routes
from services.tool_registry import build_demo_registry
from session.chat_session import ChatSession
from session.persistence import ConversationStore, InMemoryConversationStore


def create_app(
    config: AppConfig | None = None,
    *,
    llm: LLMAdapter | None = None,
    tools: ToolSubsystem | None = None,
    store: ConversationStore | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Collaborators default to the configured OpenAI-compatible provider,
    the demo local tool registry and an in-memory store; tests inject
    fakes instead.
    """
    config = config or AppConfig.load_from_env()
    set_min_level(config.log_level)

    session = ChatSession(
        llm=llm if llm is not None else build_llm_adapter(config),
        tools=tools if tools is not None else build_demo_registry(),
        store=store if store is not None else InMemoryConversationStore(),
        config=config,
    )

    @contextlib.asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        consumer = asyncio.create_task(session.run_title_updates())
        try:
            yield
        finally:
            session.cancel()
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer

    app = FastAPI(title="Chat Turn Orchestrator API", lifespan=lifespan)

    app.state.config = config
    app.state.session = session

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten later
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    register_routes(app)

    return app


def build_llm_adapter(config: AppConfig) -> OpenAIChatAdapter:
    """Build the LLM adapter for the provider selected by environment variables."""
    client = build_llm_client(
        api_key=config.openai_api_key,
        base_url=config.llm_base_url,
    )
    return OpenAIChatAdapter(
        client=client,
        model=config.llm_model,
        provider=config.llm_provider,
    )
