"""
LSP client for code navigation features.

Provides a streamlined asyncio interface for talking to a language server over
a pair of byte streams (a subprocess's stdio or a TCP socket) and querying
code intelligence like hover information.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

# Internal imports
from .server import LSPServer, create_lsp_server
from .models import LspHoverResult, LspPosition, TextDocumentItem, parse_hover_result

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 10.0

LANGUAGE_IDS = {
    ".py": "python",
    ".pyi": "python",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "typescriptreact",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
}

# Map LSP message types to Python logging levels
_LOG_LEVELS = {1: logging.ERROR, 2: logging.WARNING, 3: logging.INFO, 4: logging.DEBUG}


class LSPError(Exception):
    """Raised when the language server cannot be reached or rejects a request."""


@runtime_checkable
class LanguageServer(Protocol):
    """The two capabilities the navigation layer needs from a language server."""

    async def open_document(self, uri: str, text: str) -> None:
        ...

    async def hover(self, uri: str, position: LspPosition) -> Optional[LspHoverResult]:
        ...


def language_id_for(uri: str) -> str:
    """Guess the LSP language identifier from a URI or path extension."""
    return LANGUAGE_IDS.get(os.path.splitext(uri)[1].lower(), "plaintext")


def encode_message(message: Dict[str, Any]) -> bytes:
    """Frame a JSON-RPC message with its Content-Length header."""
    content_bytes = json.dumps(message).encode("utf-8")
    header = f"Content-Length: {len(content_bytes)}\r\n\r\n"
    return header.encode("ascii") + content_bytes


class LSPClient:
    """Client for Language Server Protocol.

    Provides core code navigation capabilities:
    - Document synchronization (open / replace)
    - Get hover information

    A background task reads server messages and resolves the futures of
    pending requests; notifications are logged.
    """

    def __init__(self, server: Optional[LSPServer] = None, request_timeout: Optional[float] = None):
        """Initialize LSP client."""
        self._server = server
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._reader_task: Optional[asyncio.Task] = None

        # State tracking
        self._initialized = False
        self._pending_requests: Dict[int, Tuple[str, asyncio.Future]] = {}
        self._next_request_id = 1
        self._document_versions: Dict[str, int] = {}
        self.capabilities: Dict[str, Any] = {}

        # Progress tracking
        self._progress_states: Dict[str, Dict[str, Any]] = {}
        self._progress_tokens = set()

        if request_timeout is None:
            request_timeout = float(os.environ.get("LSPNAV_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT))
        self.request_timeout = request_timeout

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def connect(self, host: str, port: int) -> None:
        """Connect to an LSP server listening on TCP."""
        logger.info(f"Attempting to connect to LSP server at {host}:{port}")
        try:
            reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=5.0)
        except asyncio.TimeoutError:
            raise LSPError(f"Timeout connecting to LSP server at {host}:{port}") from None
        except OSError as e:
            raise LSPError(f"Failed to connect to LSP server at {host}:{port}: {e}") from e
        await self.attach(reader, writer)

    async def attach(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Use an already open pair of streams and start reading from them."""
        await self._cleanup_connection()
        self._reader = reader
        self._writer = writer
        self._reader_task = asyncio.create_task(self._read_loop(), name="lsp-reader")

    async def _cleanup_connection(self) -> None:
        """Release stream and task resources."""
        self._initialized = False
        if self._reader_task is not None:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None

        if self._writer is not None:
            self._writer.close()
            try:
                await self._writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.debug(f"Error closing connection: {e}")
            self._writer = None
        self._reader = None

    async def initialize(self, root_uri: Optional[str] = None) -> Dict[str, Any]:
        """Perform the LSP initialization handshake and return server capabilities."""
        params = {
            "processId": os.getpid(),
            "clientInfo": {"name": "lspnav", "version": "1.0.0"},
            "rootUri": root_uri,
            "capabilities": {
                # Only request capabilities we actually use
                "textDocument": {
                    "synchronization": {"dynamicRegistration": False, "didSave": False},
                    "hover": {"contentFormat": ["markdown", "plaintext"]},
                },
                "window": {"workDoneProgress": True},
            },
            "workspaceFolders": (
                [{"uri": root_uri, "name": os.path.basename(root_uri.rstrip("/"))}] if root_uri else None
            ),
        }

        logger.info("Initializing LSP server connection")
        result = await self.send_request("initialize", params, timeout=max(self.request_timeout, 30.0))

        self.capabilities = (result or {}).get("capabilities", {})
        capability_list = list(self.capabilities.keys())
        if capability_list:
            logger.info(f"Server capabilities received: {', '.join(capability_list)}")
        else:
            logger.warning("Server returned no capabilities")

        self._initialized = True
        await self.send_notification("initialized", {})
        logger.info("LSP server initialized successfully")
        return self.capabilities

    async def shutdown(self) -> None:
        """Terminate LSP session and clean up resources."""
        if self._initialized:
            logger.info("Shutting down LSP session")
            try:
                await self.send_request("shutdown", None)
                await self.send_notification("exit", None)
            except LSPError as e:
                logger.error(f"Error during shutdown: {e}")

        await self._cleanup_connection()
        self._document_versions.clear()

        if self._server is not None:
            await self._server.shutdown()
            self._server = None
        logger.info("LSP session shut down")

    async def send_request(self, method: str, params: Any, timeout: Optional[float] = None) -> Any:
        """Send a request to the LSP server and wait for its result.

        Args:
            method: The LSP method to call
            params: Parameters for the request
            timeout: Maximum time to wait for response in seconds

        Returns:
            The ``result`` member of the response (may be None)

        Raises:
            LSPError: If not connected, the server answers with an error,
                the connection drops or the request times out
        """
        if self._writer is None:
            raise LSPError(f"Cannot send request {method}: No connection")
        if not self._initialized and method != "initialize":
            raise LSPError(f"Cannot send request {method}: Connection not initialized")

        timeout = self.request_timeout if timeout is None else timeout
        request_id = self._next_request_id
        self._next_request_id += 1

        message: Dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            message["params"] = params

        future = asyncio.get_running_loop().create_future()
        self._pending_requests[request_id] = (method, future)
        logger.info(f"Preparing request {request_id}: {method} (timeout: {timeout}s)")

        try:
            await self._send_message(message)
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.error(f"{method} request (id={request_id}) timed out after {timeout:.1f} seconds")
            raise LSPError(f"{method} request timed out after {timeout:.1f} seconds") from None
        finally:
            self._pending_requests.pop(request_id, None)

    async def send_notification(self, method: str, params: Any) -> None:
        """Send notification without expecting a response."""
        notification: Dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            notification["params"] = params
        await self._send_message(notification)

    async def _send_message(self, message: Dict[str, Any]) -> None:
        """Encode and send a message to the server."""
        if self._writer is None:
            raise LSPError("Cannot send message: Not connected to LSP server")

        message_id = message.get("id", "(notification)")
        logger.debug(f"Sending message {message_id} method={message.get('method', 'response')}")
        try:
            self._writer.write(encode_message(message))
            await self._writer.drain()
        except ConnectionError as e:
            logger.error(f"Connection error while sending message: {e}")
            self._writer = None
            raise LSPError(f"Connection to language server lost: {e}") from e

    async def _read_message(self) -> Optional[bytes]:
        """Read one framed message body, or None at end of stream."""
        content_length = None
        while True:
            line = await self._reader.readline()
            if not line:
                return None
            line = line.strip()
            if not line:
                if content_length is None:
                    logger.error("No valid Content-Length header found")
                    continue
                break
            name, _, value = line.decode("ascii", errors="replace").partition(":")
            if name.strip().lower() == "content-length":
                try:
                    content_length = int(value.strip())
                except ValueError:
                    logger.error(f"Invalid Content-Length header: {value.strip()}")

        return await self._reader.readexactly(content_length)

    async def _read_loop(self) -> None:
        """Background task that reads messages from the server."""
        try:
            while True:
                content = await self._read_message()
                if content is None:
                    logger.warning("Connection closed by server")
                    break
                try:
                    message = json.loads(content.decode("utf-8"))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    logger.error(f"Invalid JSON in message content: {content[:100]!r}...")
                    continue
                await self._handle_message(message)
        except asyncio.IncompleteReadError:
            logger.warning("Connection closed by server mid-message")
        except (ConnectionError, LSPError) as e:
            logger.error(f"Connection error: {e}")
        finally:
            logger.info("Reader task exiting")
            for method, future in self._pending_requests.values():
                if not future.done():
                    future.set_exception(LSPError(f"Connection to language server closed during {method}"))

    async def _handle_message(self, message: Dict[str, Any]) -> None:
        """Route incoming messages to appropriate handlers."""
        if "id" in message and ("result" in message or "error" in message):
            pending = self._pending_requests.get(message["id"])
            if pending is None:
                logger.warning(f"Received response for unknown request ID: {message['id']}")
                return
            method, future = pending
            if future.done():
                return
            logger.debug(f"Received response for request {message['id']}")
            if "error" in message:
                error = message["error"] or {}
                future.set_exception(LSPError(f"{method} failed: {error.get('message', 'Unknown error')}"))
            else:
                future.set_result(message.get("result"))

        elif "method" in message and "id" in message:
            # Server is expecting a response; we decline everything politely
            method = message["method"]
            params = message.get("params") or {}
            logger.debug(f"Received server request: {method}")
            result: Any = None
            if method == "window/workDoneProgress/create":
                self._progress_tokens.add(params.get("token", ""))
            elif method == "workspace/configuration":
                result = [None for _ in params.get("items", [])]
            await self._send_message({"jsonrpc": "2.0", "id": message["id"], "result": result})

        elif "method" in message:
            self._handle_notification(message["method"], message.get("params") or {})

        else:
            logger.warning(f"Received unrecognized message format: {list(message.keys())}")

    def _handle_notification(self, method: str, params: Dict[str, Any]) -> None:
        """Log server notifications."""
        logger.debug(f"Received notification: {method}")

        if method == "window/logMessage":
            level = _LOG_LEVELS.get(params.get("type", 3), logging.INFO)
            logger.log(level, f"[LSP Server] {params.get('message', '')}")

        elif method == "window/showMessage":
            level = _LOG_LEVELS.get(params.get("type", 3), logging.INFO)
            logger.log(level, f"[LSP Message] {params.get('message', '')}")

        elif method == "$/progress":
            token = params.get("token", "")
            value = params.get("value", {})
            kind = value.get("kind")
            title = value.get("title", "")
            text = value.get("message", "")
            percentage = value.get("percentage")
            percentage_str = f" ({percentage}%)" if percentage is not None else ""

            if kind == "begin":
                logger.info(f"[LSP Progress] Started: {title}")
            elif kind == "report":
                logger.info(f"[LSP Progress] {text or title}{percentage_str}")
            elif kind == "end":
                logger.info(f"[LSP Progress] Completed: {text or title}")

            self._store_progress_state(str(token), kind, title, text, percentage)

    def _store_progress_state(
        self, token: str, kind: Optional[str], title: str, message: str, percentage: Optional[int] = None
    ) -> None:
        """Store progress information per token until the server reports the end."""
        if not token:
            return

        state = self._progress_states.setdefault(
            token, {"kind": None, "title": "", "message": "", "percentage": None}
        )
        if kind:
            state["kind"] = kind
        if title:
            state["title"] = title
        if message:
            state["message"] = message
        if percentage is not None:
            state["percentage"] = percentage

        if kind == "end":
            self._progress_tokens.discard(token)
            self._progress_states.pop(token, None)

    def active_progress(self) -> List[Dict[str, Any]]:
        """Progress operations the server has started but not finished."""
        return list(self._progress_states.values())

    async def open_document(self, uri: str, text: str, language_id: Optional[str] = None) -> None:
        """Open ``uri`` with ``text``, or replace its full text if already open."""
        if not self._initialized:
            raise LSPError("Cannot open document: LSP not initialized")

        version = self._document_versions.get(uri)
        if version is None:
            item = TextDocumentItem(uri=uri, text=text, language_id=language_id or language_id_for(uri))
            await self.send_notification("textDocument/didOpen", {"textDocument": item.to_dict()})
            self._document_versions[uri] = item.version
        else:
            version += 1
            await self.send_notification(
                "textDocument/didChange",
                {
                    "textDocument": {"uri": uri, "version": version},
                    "contentChanges": [{"text": text}],
                },
            )
            self._document_versions[uri] = version

    async def close_document(self, uri: str) -> None:
        """Tell the server the document is no longer open."""
        if self._document_versions.pop(uri, None) is not None:
            await self.send_notification("textDocument/didClose", {"textDocument": {"uri": uri}})

    async def hover(self, uri: str, position: LspPosition) -> Optional[LspHoverResult]:
        """Get hover information for the symbol at a zero-based position.

        Raises:
            LSPError: If the client is not initialized or the request fails
        """
        if not self._initialized:
            raise LSPError("Cannot get hover info: LSP not initialized")

        params = {"textDocument": {"uri": uri}, "position": position.to_dict()}
        result = await self.send_request("textDocument/hover", params)
        return parse_hover_result(result)


async def create_lsp_client(
    root: str,
    language: str,
    command: Optional[List[str]] = None,
    request_timeout: Optional[float] = None,
) -> LSPClient:
    """Launch a language server for ``language`` and return an initialized client.

    Raises:
        ValueError: If the language is unsupported or its server is missing
        OSError: If the server process cannot be started
        LSPError: If the initialization handshake fails
    """
    server = create_lsp_server(language, command)
    reader, writer = await server.start()

    client = LSPClient(server=server, request_timeout=request_timeout)
    await client.attach(reader, writer)
    try:
        await client.initialize(Path(root).resolve().as_uri())
    except LSPError:
        await client.shutdown()
        raise

    logger.info(f"Client connected to {language} language server")
    return client
