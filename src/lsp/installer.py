"""
LSP server installation utilities.

Checks and reports on language server installation status.
"""

import logging
import os
import shutil
from typing import Dict, List

# Configure logging
logger = logging.getLogger(__name__)

SERVER_COMMANDS: Dict[str, List[str]] = {
    "python": ["pylsp"],
    "typescript": ["typescript-language-server", "--stdio"],
    "javascript": ["typescript-language-server", "--stdio"],
}

INSTALL_HINTS: Dict[str, str] = {
    "python": "pip install python-lsp-server",
    "typescript": "npm install -g typescript typescript-language-server",
    "javascript": "npm install -g typescript typescript-language-server",
}


def server_command(language: str) -> List[str]:
    """Return the default command line for a language's server.

    Raises:
        ValueError: If the language has no known server
    """
    command = SERVER_COMMANDS.get(language.lower())
    if command is None:
        supported = ", ".join(sorted(SERVER_COMMANDS))
        raise ValueError(f"Unsupported language: {language}. Supported languages: {supported}")
    return list(command)


def is_server_installed(language: str) -> bool:
    """Check if the language server executable is on PATH.

    Raises:
        ValueError: If the language has no known server
    """
    executable = server_command(language)[0]
    return shutil.which(executable) is not None


def install(language: str) -> bool:
    """Check and report language server installation status.

    Does not actually install anything, just confirms if already installed
    and logs how to install it otherwise.

    Raises:
        ValueError: If the language has no known server
    """
    if is_server_installed(language):
        logger.info(f"{language} language server is already installed")
        return True

    executable = server_command(language)[0]
    logger.warning(f"{language} language server ({executable}) is not installed.")
    logger.info(f"Please install it via: {INSTALL_HINTS[language.lower()]}")
    return False


SERVER_LANGUAGES: Dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}


def language_for_path(path: str) -> str:
    """Server language that understands files like ``path``.

    Raises:
        ValueError: If no known server handles the extension
    """
    extension = os.path.splitext(path)[1].lower()
    if extension not in SERVER_LANGUAGES:
        raise ValueError(f"No language server is known for '{extension or path}' files")
    return SERVER_LANGUAGES[extension]
