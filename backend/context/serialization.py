"""
Conversation serialization for provider consumption.

Responsibilities:
- Convert optional system prompt + prior history + current user text
  into provider-ready message format.

Non-responsibilities:
- No turn storage
- No logging
- No orchestration decisions
"""

from __future__ import annotations

from typing import Any, Sequence

from context.conversation import Turn


def serialize_for_llm(
    *,
    history: Sequence[Turn],
    user_text: str,
    system_prompt: str = "",
    developer_mode: bool = False,
) -> list[dict[str, Any]]:
    """
    Serialize conversation context into provider message format.

    Output format:
    [
        {"role": "system", "content": "..."},      # developer mode only
        {"role": "user", "content": "..."},
        {"role": "assistant", "content": "..."},
        ...
        {"role": "user", "content": "<current user text>"},
    ]

    Rules:
    - System prompt comes first, only if developer mode is on and the
      stripped prompt is non-empty
    - Prior user/assistant turns come next; system/tool turns are UI-only
    - Current user text is appended last as a fresh user turn
    """
    messages: list[dict[str, Any]] = []

    prompt = system_prompt.strip()
    if developer_mode and prompt:
        messages.append({"role": "system", "content": prompt})

    messages.extend(
        {"role": turn.role.value, "content": turn.content}
        for turn in history
        if turn.role.value in ("user", "assistant")
    )

    messages.append({"role": "user", "content": user_text})

    return messages
