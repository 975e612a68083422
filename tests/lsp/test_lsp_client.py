"""
Tests for the asyncio LSP client in src/lsp/client.py.

The client talks to a scripted server: everything the client writes is
decoded, and requests are answered by feeding framed responses back into the
client's reader.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Set

import pytest
import pytest_asyncio

from src.lsp.client import LSPClient, LSPError, encode_message, language_id_for
from src.lsp.models import LspPosition, MarkupContent


class ScriptedServer:
    """Stands in for the server end of the client's streams."""

    def __init__(self, reader: asyncio.StreamReader, results: Optional[Dict[str, Any]] = None):
        self.reader = reader
        self.results = results or {}
        self.errors: Dict[str, Dict[str, Any]] = {}
        self.silent: Set[str] = set()
        self.messages: List[Dict[str, Any]] = []
        self.closed = False
        self.disconnected = False
        self._buffer = b""

    # StreamWriter interface used by the client
    def write(self, data: bytes) -> None:
        self._buffer += data
        while b"\r\n\r\n" in self._buffer:
            header, rest = self._buffer.split(b"\r\n\r\n", 1)
            length = int(header.split(b":")[1])
            if len(rest) < length:
                break
            body, self._buffer = rest[:length], rest[length:]
            self._receive(json.loads(body))

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass

    def _receive(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)
        if "id" not in message or "method" not in message:
            return
        method = message["method"]
        if method in self.silent:
            return
        if method in self.errors:
            self.send({"jsonrpc": "2.0", "id": message["id"], "error": self.errors[method]})
        else:
            self.send({"jsonrpc": "2.0", "id": message["id"], "result": self.results.get(method)})

    def send(self, message: Dict[str, Any]) -> None:
        if not self.disconnected:
            self.reader.feed_data(encode_message(message))

    def disconnect(self) -> None:
        self.disconnected = True
        self.reader.feed_eof()

    def methods(self) -> List[str]:
        return [m["method"] for m in self.messages if "method" in m]


async def connect(results: Optional[Dict[str, Any]] = None, request_timeout: float = 2.0):
    reader = asyncio.StreamReader()
    server = ScriptedServer(reader, results)
    client = LSPClient(request_timeout=request_timeout)
    await client.attach(reader, server)
    await client.initialize("file:///project")
    return client, server


def test_encode_message_frames_with_content_length():
    framed = encode_message({"jsonrpc": "2.0", "method": "exit"})
    header, body = framed.split(b"\r\n\r\n", 1)
    assert header == f"Content-Length: {len(body)}".encode("ascii")
    assert json.loads(body) == {"jsonrpc": "2.0", "method": "exit"}


def test_language_id_for():
    assert language_id_for("file:///p/a.ts") == "typescript"
    assert language_id_for("file:///p/a.py") == "python"
    assert language_id_for("file:///p/README") == "plaintext"


@pytest.mark.asyncio
async def test_initialize_handshake():
    client, server = await connect({"initialize": {"capabilities": {"hoverProvider": True}}})
    try:
        assert client.initialized
        assert client.capabilities == {"hoverProvider": True}
        assert server.methods() == ["initialize", "initialized"]
        assert server.messages[0]["params"]["rootUri"] == "file:///project"
    finally:
        await client.shutdown()


@pytest.mark.asyncio
async def test_requests_before_initialize_fail():
    reader = asyncio.StreamReader()
    client = LSPClient()
    await client.attach(reader, ScriptedServer(reader))
    try:
        with pytest.raises(LSPError):
            await client.hover("file:///project/a.ts", LspPosition(0, 0))
    finally:
        await client.shutdown()


@pytest.mark.asyncio
async def test_open_then_replace_document():
    client, server = await connect()
    try:
        await client.open_document("file:///project/a.ts", "const a = 1;")
        await client.open_document("file:///project/a.ts", "const a = 2;")

        opened, changed = [m for m in server.messages if m.get("method", "").startswith("textDocument/")]
        assert opened["method"] == "textDocument/didOpen"
        assert opened["params"]["textDocument"]["languageId"] == "typescript"
        assert opened["params"]["textDocument"]["version"] == 1
        assert changed["method"] == "textDocument/didChange"
        assert changed["params"]["textDocument"]["version"] == 2
        assert changed["params"]["contentChanges"] == [{"text": "const a = 2;"}]
    finally:
        await client.shutdown()


@pytest.mark.asyncio
async def test_hover_round_trip():
    client, server = await connect(
        {
            "textDocument/hover": {
                "contents": {"kind": "markdown", "value": "const a: 1"},
                "range": {"start": {"line": 0, "character": 6}, "end": {"line": 0, "character": 7}},
            }
        }
    )
    try:
        result = await client.hover("file:///project/a.ts", LspPosition(0, 6))
        assert result.contents == MarkupContent(value="const a: 1", kind="markdown")
        assert result.range.start == LspPosition(0, 6)

        request = [m for m in server.messages if m.get("method") == "textDocument/hover"][0]
        assert request["params"] == {
            "textDocument": {"uri": "file:///project/a.ts"},
            "position": {"line": 0, "character": 6},
        }
    finally:
        await client.shutdown()


@pytest.mark.asyncio
async def test_hover_null_result():
    client, _ = await connect({"textDocument/hover": None})
    try:
        assert await client.hover("file:///project/a.ts", LspPosition(0, 0)) is None
    finally:
        await client.shutdown()


@pytest.mark.asyncio
async def test_error_response_raises():
    client, server = await connect()
    server.errors["textDocument/hover"] = {"code": -32603, "message": "boom"}
    try:
        with pytest.raises(LSPError, match="textDocument/hover failed: boom"):
            await client.hover("file:///project/a.ts", LspPosition(0, 0))
    finally:
        await client.shutdown()


@pytest.mark.asyncio
async def test_request_timeout():
    client, server = await connect(request_timeout=0.05)
    server.silent.add("textDocument/hover")
    try:
        with pytest.raises(LSPError, match="timed out"):
            await client.hover("file:///project/a.ts", LspPosition(0, 0))
    finally:
        await client.shutdown()


@pytest.mark.asyncio
async def test_server_requests_are_answered():
    client, server = await connect()
    try:
        server.send({
            "jsonrpc": "2.0",
            "id": 99,
            "method": "workspace/configuration",
            "params": {"items": [{"section": "a"}, {"section": "b"}]},
        })
        for _ in range(100):
            replies = [m for m in server.messages if m.get("id") == 99]
            if replies:
                break
            await asyncio.sleep(0.01)

        assert replies == [{"jsonrpc": "2.0", "id": 99, "result": [None, None]}]
    finally:
        await client.shutdown()


@pytest.mark.asyncio
async def test_progress_notifications_are_tracked():
    client, server = await connect()
    try:
        server.send({
            "jsonrpc": "2.0",
            "method": "$/progress",
            "params": {"token": "t1", "value": {"kind": "begin", "title": "Indexing"}},
        })
        for _ in range(100):
            if client.active_progress():
                break
            await asyncio.sleep(0.01)
        assert client.active_progress()[0]["title"] == "Indexing"

        server.send({"jsonrpc": "2.0", "method": "$/progress", "params": {"token": "t1", "value": {"kind": "end"}}})
        for _ in range(100):
            if not client.active_progress():
                break
            await asyncio.sleep(0.01)
        assert client.active_progress() == []
    finally:
        await client.shutdown()


@pytest.mark.asyncio
async def test_closed_connection_fails_pending_requests():
    client, server = await connect(request_timeout=0.2)
    server.silent.add("textDocument/hover")
    try:
        pending = asyncio.ensure_future(client.hover("file:///project/a.ts", LspPosition(0, 0)))
        await asyncio.sleep(0.01)
        server.disconnect()
        with pytest.raises(LSPError, match="closed"):
            await pending
    finally:
        await client.shutdown()


@pytest.mark.asyncio
async def test_shutdown_sends_shutdown_and_exit():
    client, server = await connect()
    await client.shutdown()
    assert server.methods()[-2:] == ["shutdown", "exit"]
    assert server.closed
    assert not client.initialized


@pytest.mark.asyncio
async def test_close_document_then_reopen():
    client, server = await connect()
    try:
        await client.close_document("file:///project/a.ts")
        await client.open_document("file:///project/a.ts", "const a = 1;")
        await client.close_document("file:///project/a.ts")
        await client.open_document("file:///project/a.ts", "const a = 2;")

        document_methods = [m for m in server.methods() if m.startswith("textDocument/")]
        assert document_methods == ["textDocument/didOpen", "textDocument/didClose", "textDocument/didOpen"]
        closed = [m for m in server.messages if m.get("method") == "textDocument/didClose"][0]
        assert closed["params"] == {"textDocument": {"uri": "file:///project/a.ts"}}
        reopened = [m for m in server.messages if m.get("method") == "textDocument/didOpen"][1]
        assert reopened["params"]["textDocument"]["version"] == 1
    finally:
        await client.shutdown()


class TestTcpTransport:
    @pytest_asyncio.fixture
    async def tcp_server(self):
        received: List[Dict[str, Any]] = []

        async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            try:
                while True:
                    header = await reader.readuntil(b"\r\n\r\n")
                    length = int(header.split(b":")[1])
                    message = json.loads(await reader.readexactly(length))
                    received.append(message)
                    if "id" in message and "method" in message:
                        result = None
                        if message["method"] == "initialize":
                            result = {"capabilities": {"hoverProvider": True}}
                        writer.write(encode_message({"jsonrpc": "2.0", "id": message["id"], "result": result}))
                        await writer.drain()
            except (asyncio.IncompleteReadError, ConnectionError):
                pass
            finally:
                writer.close()

        server = await asyncio.start_server(handle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        yield port, received
        server.close()
        await server.wait_closed()

    @pytest.mark.asyncio
    async def test_connect_and_initialize(self, tcp_server):
        port, received = tcp_server
        client = LSPClient(request_timeout=2.0)
        try:
            await client.connect("127.0.0.1", port)
            capabilities = await client.initialize("file:///project")
        finally:
            await client.shutdown()

        assert capabilities == {"hoverProvider": True}
        assert [m.get("method") for m in received][:3] == ["initialize", "initialized", "shutdown"]

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        listener = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
        port = listener.sockets[0].getsockname()[1]
        listener.close()
        await listener.wait_closed()

        client = LSPClient()
        with pytest.raises(LSPError, match="Failed to connect"):
            await client.connect("127.0.0.1", port)
