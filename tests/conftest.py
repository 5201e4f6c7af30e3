"""Global test configuration for the BTCP client."""

import logging
import os

import pytest

from btcp_client import LoopbackCoreClient, create_client


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep BTCP_* variables from the developer's shell out of ClientOptions."""
    for key in list(os.environ):
        if key.upper().startswith("BTCP_"):
            monkeypatch.delenv(key, raising=False)
    yield
    # debug=True lowers the package logger; put it back for the next test
    logging.getLogger("btcp_client").setLevel(logging.NOTSET)


@pytest.fixture
def client():
    """Client on the loopback core with every capability granted."""
    return create_client(server_url="wss://btcp.test", core_factory=LoopbackCoreClient)


@pytest.fixture
def core(client):
    """The loopback core behind ``client``."""
    return client.core_client


@pytest.fixture
def recorded(client):
    """Every event the client emits, as (event, payload) pairs in order."""
    events: list[tuple[str, object]] = []
    for name in ("connect", "disconnect", "reconnect", "error", "tool:call", "tool:result", "message"):
        client.on(name, lambda payload, name=name: events.append((name, payload)))
    return events
