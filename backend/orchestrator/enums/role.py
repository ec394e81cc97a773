"""
Conversation role enumeration.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Author of a turn, as understood by chat-completion providers."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"
