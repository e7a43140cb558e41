"""Shared fixtures: started chains talking to a FakeServer."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fakes import PACKAGE_NAME, SERVER_URL, SESSION_ID, FakeServer

from fastest.chain.android import AndroidTester
from fastest.chain.tester import Tester
from fastest.remote.connection import Connection


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest_asyncio.fixture
async def connection(server: FakeServer) -> AsyncGenerator[Connection, None]:
    conn = Connection(SERVER_URL, transport=httpx.MockTransport(server.handler))
    yield conn
    await conn.aclose()


@pytest_asyncio.fixture
async def tester(server: FakeServer, connection: Connection) -> Tester:
    """Started Tester; the session creation request is already cleared."""
    chain = Tester(connection=connection, capabilities={"platformName": "Android"})
    server.responses = [{"sessionId": SESSION_ID}]
    await chain.init()
    server.requests.clear()
    return chain


@pytest_asyncio.fixture
async def android(server: FakeServer, connection: Connection) -> AndroidTester:
    chain = AndroidTester(connection=connection, package_name=PACKAGE_NAME)
    server.responses = [{"sessionId": SESSION_ID}]
    await chain.init()
    server.requests.clear()
    return chain
