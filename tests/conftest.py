"""Test configuration and fixtures."""
import os
import tempfile

# keep test runs from writing server.log into the package directory
os.environ.setdefault("LANTERN_LOG_FILE", os.path.join(tempfile.gettempdir(), "lantern_chat_test.log"))

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from lantern_chat.server.main import create_app
from lantern_chat.server.relay import Relay


async def drain(channel):
    """Collect every message currently queued on a channel."""
    messages = []
    while channel.pending:
        message = await channel.get()
        if message is not None:
            messages.append(message)
    return messages


@pytest.fixture
def relay():
    return Relay()


@pytest.fixture
def client(relay):
    with TestClient(create_app(relay)) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def make_async_client(relay):
    """Factory for ASGI clients that each carry their own session cookie."""
    app = create_app(relay)
    clients = []

    def factory():
        http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
        clients.append(http)
        return http

    yield factory
    for http in clients:
        await http.aclose()
