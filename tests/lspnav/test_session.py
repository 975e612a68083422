"""
Tests for Session and SessionBuilder.
"""

import os

import pytest

from src.lspnav.exceptions import ProjectModelError, SessionError
from src.lspnav.refactor.specifiers import SpecifierProject
from src.lspnav.session import Session


class ClosableServer:
    def __init__(self):
        self.shut_down = False

    async def open_document(self, uri, text):
        pass

    async def hover(self, uri, position):
        return None

    async def shutdown(self):
        self.shut_down = True


def test_builder_defaults(monkeypatch):
    monkeypatch.delenv("LSPNAV_SETTLE_DELAY", raising=False)
    session = Session.builder().initialize()

    assert session.session_id.startswith("session-")
    assert session.settle_delay == 1.0
    assert session.workspace == os.getcwd()
    assert not session.has_lsp_client


def test_settle_delay_from_environment(monkeypatch):
    monkeypatch.setenv("LSPNAV_SETTLE_DELAY", "0.25")
    assert Session.builder().initialize().settle_delay == 0.25


def test_builder_is_immutable():
    base = Session.builder().session_id("a")
    derived = base.session_id("b")
    assert base.initialize().session_id == "a"
    assert derived.initialize().session_id == "b"


def test_no_lsp_client():
    session = Session.builder().initialize()
    with pytest.raises(SessionError):
        session.lsp_client


def test_sessions_do_not_share_clients(fake_server):
    first = Session.builder().lsp_client(fake_server).initialize()
    second = Session.builder().initialize()

    assert first.lsp_client is fake_server
    assert not second.has_lsp_client


def test_project_models_are_cached_per_root(session, workspace, tmp_path_factory):
    project = session.project_for_file(workspace, os.path.join(workspace, "a.ts"))

    assert isinstance(project, SpecifierProject)
    assert session.project_for_file(workspace, os.path.join(workspace, "b.js")) is project

    other_root = str(tmp_path_factory.mktemp("other"))
    assert session.project_for_file(other_root, os.path.join(other_root, "a.ts")) is not project

    with pytest.raises(ProjectModelError):
        session.project_for_file(workspace, os.path.join(workspace, "a.rb"))


@pytest.mark.asyncio
async def test_close_shuts_down_server():
    server = ClosableServer()
    session = Session.builder().lsp_client(server).initialize()

    await session.close()

    assert server.shut_down
    assert not session.has_lsp_client
