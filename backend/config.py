"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No orchestration logic
- No behavioral constants
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import DEFAULT_LLM_MODEL, OLLAMA_OPENAI_BASE_URL


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the app factory and the chat session.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # LLM configuration
    # ------------------------------------------------------------------

    llm_provider: str = "ollama"
    llm_model: str = DEFAULT_LLM_MODEL
    llm_base_url: str | None = OLLAMA_OPENAI_BASE_URL
    openai_api_key: str | None = None

    # ------------------------------------------------------------------
    # Developer mode (custom system prompt)
    # ------------------------------------------------------------------

    developer_mode: bool = False
    system_prompt: str = ""

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        LLM_BASE_URL defaults to the local Ollama endpoint only when
        LLM_PROVIDER is "ollama"; the OpenAI provider uses the vendor default.
        """
        provider = os.environ.get("LLM_PROVIDER", "ollama").lower()
        default_base_url = OLLAMA_OPENAI_BASE_URL if provider == "ollama" else None

        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            llm_provider=provider,
            llm_model=os.environ.get("LLM_MODEL", DEFAULT_LLM_MODEL),
            llm_base_url=os.environ.get("LLM_BASE_URL", default_base_url),
            openai_api_key=os.environ.get("OPENAI_API_KEY"),

            developer_mode=os.environ.get("DEVELOPER_MODE", "0") == "1",
            system_prompt=os.environ.get("SYSTEM_PROMPT", ""),
        )
