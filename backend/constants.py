"""
BEHAVIOR-AS-CONSTANTS
---------------------
Single source of truth for all behavioral constants of a chat turn.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic strings elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Reasoning / answer separation
# =============================================================================

# Models wrap intermediate reasoning in <think>...</think>
REASONING_TAG: Final[str] = "think"

# Separator between completed reasoning segments, and between the
# initial answer and the post-tool follow-up answer.
PARAGRAPH_SEPARATOR: Final[str] = "\n\n"

# =============================================================================
# Tool names
# =============================================================================

# Qualified tool name = provider + separator + tool.
# Provider names must not contain the separator; tool names may.
TOOL_NAME_SEPARATOR: Final[str] = "_"

# Fallback description when a tool ships none: "Tool from <provider>"
TOOL_DESCRIPTION_FALLBACK: Final[str] = "Tool from {provider}"

# =============================================================================
# Cancellation / errors
# =============================================================================

CANCELLATION_MARKER: Final[str] = "[Cancelled]"
CANCELLATION_SUFFIX: Final[str] = " " + CANCELLATION_MARKER

ERROR_CONTENT_PREFIX: Final[str] = "Error: "
UNKNOWN_ERROR_MESSAGE: Final[str] = "An unknown error occurred"

# =============================================================================
# Tool capability heuristic
# =============================================================================

# Lowercased substrings of model names known to support tool calling
TOOL_CAPABLE_MODEL_PATTERNS: Final[Tuple[str, ...]] = (
    "functionary",
    "mistral",
    "command",
    "hermes",
    "llama3.1",
    "llama-3.1",
    "phi",
    "granite",
)

# Pattern -> substrings that disqualify it (e.g. qwen but not the 0.6b size)
TOOL_CAPABLE_MODEL_EXCLUSIONS: Final[Tuple[Tuple[str, Tuple[str, ...]], ...]] = (
    ("qwen", ("0.6b",)),
)

RECOMMENDED_TOOL_MODEL: Final[str] = "functionary-small-v3.2"

# =============================================================================
# Provider defaults
# =============================================================================

OLLAMA_OPENAI_BASE_URL: Final[str] = "http://127.0.0.1:11434/v1"

# Ollama ignores the key, but the OpenAI client requires a value
OLLAMA_PLACEHOLDER_API_KEY: Final[str] = "ollama"

DEFAULT_LLM_MODEL: Final[str] = "qwen3:8b"
