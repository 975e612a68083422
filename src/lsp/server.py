"""
LSP server manager.

Manages the lifecycle of a language server subprocess and exposes its stdio
streams to the client.
"""

import asyncio
import logging
import os
import shlex
from typing import List, Optional, Tuple

from .installer import install, is_server_installed, server_command

# Configure logging
logger = logging.getLogger(__name__)


class LSPServer:
    """Manages a language server process speaking LSP over stdio."""

    def __init__(self, command: List[str], language: Optional[str] = None):
        """Initialize the LSP server manager."""
        self.command = command
        self.language = language
        self._process: Optional[asyncio.subprocess.Process] = None
        self._stderr_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    async def start(self) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        """Start the server process and return its (stdout, stdin) streams.

        Raises:
            OSError: If the executable cannot be launched
        """
        if self.running:
            logger.info(f"Reusing existing language server (PID {self.pid})")
            return self._process.stdout, self._process.stdin

        env = os.environ.copy()
        env["PYTHONUNBUFFERED"] = "1"

        logger.info(f"Starting language server with command: {' '.join(self.command)}")
        self._process = await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        self._stderr_task = asyncio.create_task(self._drain_stderr())
        logger.info(f"Language server started with PID {self._process.pid}")
        return self._process.stdout, self._process.stdin

    async def _drain_stderr(self) -> None:
        """Forward the server's stderr to the log so the pipe never fills up."""
        stream = self._process.stderr
        while True:
            line = await stream.readline()
            if not line:
                break
            logger.debug(f"[LSP stderr] {line.decode('utf-8', errors='replace').rstrip()}")

    async def shutdown(self) -> None:
        """Stop the server process and release all resources."""
        process = self._process
        self._process = None
        if process is None:
            return

        logger.info("Shutting down language server")
        if process.stdin and not process.stdin.is_closing():
            process.stdin.close()

        if process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=2.0)
            except asyncio.TimeoutError:
                logger.warning("Process did not terminate gracefully, forcing kill")
                process.kill()
                await process.wait()

        if self._stderr_task:
            self._stderr_task.cancel()
            self._stderr_task = None

        logger.info(f"Process stopped (exit code: {process.returncode})")


def create_lsp_server(language: str, command: Optional[List[str]] = None) -> LSPServer:
    """Create a server manager for ``language``.

    The command comes from, in order: the ``command`` argument, the
    ``LSPNAV_SERVER_COMMAND`` environment variable, the default for the language.

    Raises:
        ValueError: If the language is unsupported or its server is not installed
    """
    if command is None and os.environ.get("LSPNAV_SERVER_COMMAND"):
        command = shlex.split(os.environ["LSPNAV_SERVER_COMMAND"])

    if command is None:
        command = server_command(language)
        if not is_server_installed(language):
            install(language)
            raise ValueError(f"Language server for {language} is not installed: {command[0]}")

    return LSPServer(command=command, language=language)
