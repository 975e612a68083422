"""
Shared fixtures: temporary workspaces and a scripted language server.
"""

import os
import textwrap
from typing import Callable, List, Optional, Tuple

import pytest

from src.lsp.models import LspHoverResult, LspPosition
from src.lspnav.session import Session


class FakeLanguageServer:
    """Records every call and answers hover with a preset result."""

    def __init__(self, result: Optional[LspHoverResult] = None):
        self.result = result
        self.opened: List[Tuple[str, str]] = []
        self.hovers: List[Tuple[str, LspPosition]] = []
        self.calls: List[str] = []

    async def open_document(self, uri: str, text: str) -> None:
        self.calls.append("open_document")
        self.opened.append((uri, text))

    async def hover(self, uri: str, position: LspPosition) -> Optional[LspHoverResult]:
        self.calls.append("hover")
        self.hovers.append((uri, position))
        return self.result


@pytest.fixture
def workspace(tmp_path) -> str:
    return str(tmp_path)


@pytest.fixture
def write_file(workspace) -> Callable[[str, str], str]:
    """Create a file under the workspace; returns its absolute path."""

    def _write(relative_path: str, content: str) -> str:
        path = os.path.join(workspace, relative_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(textwrap.dedent(content))
        return path

    return _write


@pytest.fixture
def fake_server() -> FakeLanguageServer:
    return FakeLanguageServer()


@pytest.fixture
def session(workspace, fake_server) -> Session:
    return (
        Session.builder()
        .session_id("test_session")
        .workspace(workspace)
        .settle_delay(0)
        .lsp_client(fake_server)
        .initialize()
    )
