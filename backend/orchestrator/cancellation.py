"""
Cooperative cancellation for a single active turn.

Responsibilities:
- Carry a cancel signal from cancel() to every suspension point of a turn
  (each streamed chunk, each tool-call boundary, the follow-up request)
- Distinguish cancellation from failure (CancellationError)

Non-responsibilities:
- NO task killing: in-flight tool calls and provider requests are never
  forcibly aborted; they observe the signal at the next boundary
- NO state machine decisions
- NO knowledge of turns or conversations

This module is infrastructure only.
"""

from __future__ import annotations

import asyncio


class CancellationError(Exception):
    """The active turn was cancelled by the caller. Not a failure."""


class CancellationToken:
    """
    One-shot cancel signal owned by the orchestrator for one turn.

    Lifecycle:
    1. Orchestrator creates a fresh token on submit
    2. Token is passed into stream consumption and tool dispatch
    3. cancel() signals it (idempotent)
    4. Consumers call raise_if_cancelled() / check `cancelled` at
       each suspension point
    5. Orchestrator drops the token when the turn finalizes

    A token is never reset; a new turn gets a new token.
    """

    def __init__(self, reason: str = "cancelled") -> None:
        self._event = asyncio.Event()
        self._reason = reason

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str | None = None) -> bool:
        """
        Signal cancellation.

        Returns True if this call flipped the token, False if it was
        already cancelled (reason of the first call is kept).
        """
        if self._event.is_set():
            return False
        if reason:
            self._reason = reason
        self._event.set()
        return True

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError(self._reason)

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        await self._event.wait()
