import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from shared.utils.cancellation import ClientDisconnected, run_unless_disconnected


def make_request(disconnected: bool):
    return SimpleNamespace(
        url=SimpleNamespace(path='/api/validate-ticket'),
        is_disconnected=AsyncMock(return_value=disconnected),
    )


async def test_returns_result_when_call_finishes():
    async def call():
        return 'OK'

    request = make_request(disconnected=False)

    assert await run_unless_disconnected(request, call()) == 'OK'


async def test_propagates_call_errors():
    async def call():
        raise ValueError('boom')

    with pytest.raises(ValueError):
        await run_unless_disconnected(make_request(disconnected=False), call())


async def test_cancels_call_when_client_disconnects():
    cancelled = asyncio.Event()

    async def slow_call():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    request = make_request(disconnected=True)

    with pytest.raises(ClientDisconnected):
        await run_unless_disconnected(request, slow_call(), poll_interval=0.01)

    await asyncio.wait_for(cancelled.wait(), timeout=1)
    request.is_disconnected.assert_awaited()


async def test_keeps_waiting_while_client_connected():
    async def call():
        await asyncio.sleep(0.05)
        return 'done'

    request = make_request(disconnected=False)

    assert await run_unless_disconnected(request, call(), poll_interval=0.01) == 'done'
    assert request.is_disconnected.await_count >= 1
