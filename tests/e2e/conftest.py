"""
Pytest configuration for end-to-end tests.

Serves the fake EL and CL nodes over real HTTP with aiohttp, each in its own
thread and event loop, so the verifier runs exactly as in production: real
sockets, real httpx client, real clock.
"""

from __future__ import annotations

import asyncio
import socket
import threading
import time
from collections.abc import Generator

import pytest
from aiohttp import web

from tests.node_health.helpers import FakeConsensusNode, FakeExecutionNode


class _ServerThread(threading.Thread):
    """Thread that runs one aiohttp app in its own event loop."""

    def __init__(self, routes: list[web.RouteDef]):
        super().__init__(daemon=True)
        self.routes = routes
        self.port: int | None = None
        self.loop: asyncio.AbstractEventLoop | None = None
        self.runner: web.AppRunner | None = None
        self.ready = threading.Event()
        self.error: Exception | None = None

    def run(self) -> None:
        """Run the server in a new event loop."""
        try:
            self.loop = asyncio.new_event_loop()
            asyncio.set_event_loop(self.loop)

            self.loop.run_until_complete(self._start())
            self.ready.set()

            self.loop.run_forever()
            self.loop.run_until_complete(self._cleanup())

        except Exception as e:
            self.error = e
            self.ready.set()
        finally:
            if self.loop:
                self.loop.close()

    async def _start(self) -> None:
        app = web.Application()
        app.add_routes(self.routes)
        self.runner = web.AppRunner(app)
        await self.runner.setup()
        # Port 0: let the OS pick a free port.
        site = web.TCPSite(self.runner, "127.0.0.1", 0)
        await site.start()
        self.port = self.runner.addresses[0][1]

    async def _cleanup(self) -> None:
        if self.runner is not None:
            await self.runner.cleanup()

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    def stop(self) -> None:
        """Stop the event loop; the runner is cleaned up on the way out."""
        if self.loop:
            self.loop.call_soon_threadsafe(self.loop.stop)
        self.join(timeout=5.0)


def _execution_routes(node: FakeExecutionNode) -> list[web.RouteDef]:
    async def handle(request: web.Request) -> web.Response:
        if node.raw_body is not None:
            return web.Response(status=node.status_code, text=node.raw_body)
        payload = await request.json()
        return web.json_response(node.rpc(payload), status=node.status_code)

    return [web.post("/", handle)]


def _consensus_routes(node: FakeConsensusNode) -> list[web.RouteDef]:
    async def handle(request: web.Request) -> web.Response:
        status, body = node.route(request.path)
        if body is None:
            return web.Response(status=status)
        if isinstance(body, str):
            return web.Response(status=status, text=body)
        return web.json_response(body, status=status)

    return [web.get("/{tail:.*}", handle)]


def _serve(routes: list[web.RouteDef]) -> _ServerThread:
    server = _ServerThread(routes)
    server.start()
    server.ready.wait(timeout=10.0)
    if server.error:
        pytest.fail(f"Failed to start fake node: {server.error}")
    return server


@pytest.fixture
def el_node() -> FakeExecutionNode:
    """Synced EL fake whose head is 10 seconds old on the real clock."""
    return FakeExecutionNode(head_timestamp=int(time.time()) - 10)


@pytest.fixture
def cl_node() -> FakeConsensusNode:
    """Synced CL fake whose head is 10 seconds old on the real clock."""
    node = FakeConsensusNode()
    node.set_head_age(10, now=time.time())
    return node


@pytest.fixture
def el_url(el_node: FakeExecutionNode) -> Generator[str, None, None]:
    """Base URL of a running fake EL node."""
    server = _serve(_execution_routes(el_node))
    yield server.url
    server.stop()


@pytest.fixture
def cl_url(cl_node: FakeConsensusNode) -> Generator[str, None, None]:
    """Base URL of a running fake CL node."""
    server = _serve(_consensus_routes(cl_node))
    yield server.url
    server.stop()


@pytest.fixture
def closed_url() -> str:
    """URL of a local port nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}"
