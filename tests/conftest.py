"""
Shared fixtures for the CTF Arena client tests.
"""

from typing import Callable, List

import httpx
import pytest

from ctfbot.api.client import PlatformClient
from ctfbot.services.stale_guard import StaleGuard
from tests.factories import BASE_URL, NOW_MS


@pytest.fixture
def guard():
    guard = StaleGuard()
    yield guard
    guard.unmount()


@pytest.fixture
def clock() -> Callable[[], float]:
    return lambda: NOW_MS


@pytest.fixture
async def make_client():
    clients: List[PlatformClient] = []

    def _make(handler: Callable[[httpx.Request], httpx.Response], token: str = "secret") -> PlatformClient:
        client = PlatformClient(
            base_url=BASE_URL,
            token=token,
            timeout=5,
            transport=httpx.MockTransport(handler)
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.close()
