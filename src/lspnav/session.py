"""
Explicit context passed to every operation.

A Session holds the workspace root, the language server connection and the
project models used for refactoring. Nothing is looked up from process-wide
state, so two sessions in one process stay independent.
"""

import datetime
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from src.lspnav.core.constants import DEFAULT_SETTLE_DELAY
from src.lspnav.exceptions import FatalError, SessionError

if TYPE_CHECKING:
    from src.lsp.client import LanguageServer
    from src.lspnav.refactor.project import ProjectModel
    from src.lspnav.shell.shell import Shell

logger = logging.getLogger(__name__)

SETTLE_DELAY_ENV = "LSPNAV_SETTLE_DELAY"


@dataclass
class Session:
    """
    Attributes:
        session_id: Identifier used in log lines
        settle_delay: Seconds between document sync and a hover query
        _workspace: Root that relative paths resolve against (cwd when unset)
        _lsp_client: Attached language server, if any
        _projects: Project models cached per (kind, root)
    """

    session_id: str
    settle_delay: float = DEFAULT_SETTLE_DELAY
    _workspace: Optional[str] = None
    _lsp_client: Optional["LanguageServer"] = None
    _shell: Optional["Shell"] = None
    _projects: Dict[Tuple[str, str], "ProjectModel"] = field(default_factory=dict)

    @classmethod
    def builder(cls) -> "SessionBuilder":
        return SessionBuilder()

    @property
    def workspace(self) -> str:
        return os.getcwd() if self._workspace is None else self._workspace

    @workspace.setter
    def workspace(self, value: Optional[str]):
        self._workspace = value

    @property
    def shell(self) -> "Shell":
        if self._shell is None:
            raise FatalError("Session has no shell; build it with Session.builder().initialize()")
        return self._shell

    @property
    def lsp_client(self) -> "LanguageServer":
        """
        Raises:
            SessionError: If no language server is attached
        """
        if self._lsp_client is None:
            raise SessionError("No active language server session. Start one before requesting hover information.")
        return self._lsp_client

    @property
    def has_lsp_client(self) -> bool:
        return self._lsp_client is not None

    def attach_lsp_client(self, client: Optional["LanguageServer"]) -> None:
        """Route hover queries to ``client``; None detaches the current one."""
        self._lsp_client = client

    async def start_language_server(
        self, language: str, command: Optional[List[str]] = None
    ) -> "LanguageServer":
        from src.lsp.client import create_lsp_client

        client = await create_lsp_client(self.workspace, language, command)
        self.attach_lsp_client(client)
        logger.info(f"Session {self.session_id} attached to {language} language server")
        return client

    def project_for_file(self, root: str, path: str) -> "ProjectModel":
        """
        Project model that handles ``path`` under ``root``.

        Models are created lazily and reused for later calls with the same
        kind of file and the same root.
        """
        from src.lspnav.refactor.project import create_project_model, project_kind

        key = (project_kind(path), os.path.abspath(root))
        project = self._projects.get(key)
        if project is None:
            project = self._projects[key] = create_project_model(root, path)
            logger.info(f"Created {key[0]} project model for {key[1]}")
        return project

    async def close(self) -> None:
        client, self._lsp_client = self._lsp_client, None
        if client is not None and hasattr(client, "shutdown"):
            await client.shutdown()
        while self._projects:
            _, project = self._projects.popitem()
            project.close()


def _default_session_id() -> str:
    return "session-" + datetime.datetime.now().astimezone().strftime("%m%d-%H%M%S")


class SessionBuilder:
    """
    Fluent, immutable builder for Session.

    Each setter returns a new builder, so a partially configured builder can
    be shared and specialised without affecting other users.
    """

    def __init__(self, settings: Optional[Dict[str, Any]] = None):
        self._settings: Dict[str, Any] = dict(settings or {})

    def _with(self, **changes: Any) -> "SessionBuilder":
        return SessionBuilder({**self._settings, **changes})

    def session_id(self, session_id: Optional[str]) -> "SessionBuilder":
        return self._with(session_id=session_id)

    def workspace(self, workspace: str) -> "SessionBuilder":
        return self._with(workspace=workspace)

    def settle_delay(self, seconds: float) -> "SessionBuilder":
        return self._with(settle_delay=seconds)

    def lsp_client(self, client: "LanguageServer") -> "SessionBuilder":
        """Start the session with an already connected language server."""
        return self._with(lsp_client=client)

    def initialize(self) -> Session:
        """
        Build the session and its shell.

        The settle delay falls back to LSPNAV_SETTLE_DELAY, then to the
        built-in default.
        """
        settle_delay = self._settings.get("settle_delay")
        if settle_delay is None:
            settle_delay = float(os.environ.get(SETTLE_DELAY_ENV, DEFAULT_SETTLE_DELAY))

        session = Session(
            session_id=self._settings.get("session_id") or _default_session_id(),
            settle_delay=settle_delay,
            _workspace=self._settings.get("workspace"),
            _lsp_client=self._settings.get("lsp_client"),
        )

        from src.lspnav.shell.shell import Shell

        session._shell = Shell(session=session)
        logger.info(f"Session {session.session_id} ready (workspace: {session.workspace})")
        return session
