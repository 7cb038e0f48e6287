"""Shared fixtures for the test suite."""

import threading
from collections.abc import Callable, Generator

import pytest

from clob_transport.transport import TransportMetrics
from tests.helpers.server import Reply, ScriptedServer


@pytest.fixture(autouse=True)
def reset_metrics() -> Generator[None, None, None]:
    """Give every test a fresh metrics singleton."""
    TransportMetrics.reset()
    yield
    TransportMetrics.reset()


@pytest.fixture
def scripted_server() -> Generator[Callable[..., ScriptedServer], None, None]:
    """Start local servers that answer from a script of replies.

    Yields:
        Factory taking Reply objects and returning a running server.
    """
    servers: list[ScriptedServer] = []

    def start(*replies: Reply) -> ScriptedServer:
        server = ScriptedServer(list(replies))
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()
