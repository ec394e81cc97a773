# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio

import pytest

from orchestrator.cancellation import CancellationError, CancellationToken


def test_cancel_is_idempotent_and_keeps_first_reason() -> None:
    token = CancellationToken()

    assert token.cancel("user") is True
    assert token.cancel("shutdown") is False
    assert token.cancelled
    assert token.reason == "user"


def test_raise_if_cancelled() -> None:
    token = CancellationToken()
    token.raise_if_cancelled()

    token.cancel()
    with pytest.raises(CancellationError, match="cancelled"):
        token.raise_if_cancelled()


@pytest.mark.asyncio
async def test_wait_resumes_on_cancel() -> None:
    token = CancellationToken()
    waiter = asyncio.create_task(token.wait())

    await asyncio.sleep(0)
    assert not waiter.done()

    token.cancel()
    await asyncio.wait_for(waiter, timeout=1)
