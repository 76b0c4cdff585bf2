"""
Shared fixtures: loopback stand-ins for Bedrock nodes.
"""

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
import socket

import orjson
import pytest
import pytest_asyncio

from bedrock_gateway.config import ClusterConfig, HostEndpoint


def bedrock_reply(status_line: str = "200 OK", body: dict | None = None) -> bytes:
    """Build a raw Bedrock reply."""
    content = orjson.dumps(body) if body is not None else b""
    head = f"{status_line}\r\nContent-Length: {len(content)}\r\n\r\n".encode()
    return head + content


class FakeBedrockNode:
    """
    A loopback TCP server that records request heads and answers with a fixed reply.

    With ``reply=None`` it never answers and waits for the client to hang up.
    """

    def __init__(self, reply: bytes | None = None) -> None:
        self.reply = reply
        self.requests: list[bytes] = []
        self._server: asyncio.Server | None = None

    @property
    def endpoint(self) -> HostEndpoint:
        assert self._server is not None
        return HostEndpoint(address="127.0.0.1", port=self._server.sockets[0].getsockname()[1])

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            head = await reader.readuntil(b"\r\n\r\n")
        except (asyncio.IncompleteReadError, ConnectionError):
            writer.close()
            return
        self.requests.append(head)
        if self.reply is None:
            await reader.read()
        else:
            writer.write(self.reply)
            await writer.drain()
        writer.close()

    async def start(self) -> "FakeBedrockNode":
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()


NodeFactory = Callable[..., Awaitable[FakeBedrockNode]]


@pytest_asyncio.fixture
async def bedrock_node() -> AsyncGenerator[NodeFactory, None]:
    """Factory for fake Bedrock nodes, all stopped after the test."""
    nodes: list[FakeBedrockNode] = []

    async def _start(reply: bytes | None = bedrock_reply(body={"ok": True})) -> FakeBedrockNode:
        node = await FakeBedrockNode(reply).start()
        nodes.append(node)
        return node

    yield _start

    for node in nodes:
        await node.stop()


def unused_endpoint() -> HostEndpoint:
    """An endpoint on a loopback port nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return HostEndpoint(address="127.0.0.1", port=port)


@pytest.fixture
def closed_endpoint() -> Callable[[], HostEndpoint]:
    return unused_endpoint


def make_cluster(
    primary: list[HostEndpoint],
    failover: list[HostEndpoint] | None = None,
    **overrides: object,
) -> ClusterConfig:
    values: dict[str, object] = {
        "cluster_name": "test",
        "primary": tuple(primary),
        "failover": tuple(failover or ()),
        "connection_timeout": 1,
        "read_timeout": 1,
        "blacklist_timeout": 60,
        "command_timeout": 0,
    }
    values.update(overrides)
    return ClusterConfig.model_validate(values)
