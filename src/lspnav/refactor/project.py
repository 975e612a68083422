"""
Project models.

A project model tracks the files of a project and performs structural edits on
them: moving a file and rewriting every import that referred to it. The move
engine talks to project models only through the ProjectModel interface.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from src.lspnav.exceptions import ProjectModelError

logger = logging.getLogger(__name__)

PYTHON_EXTENSIONS = (".py", ".pyi")
SCRIPT_EXTENSIONS = (".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs")


@dataclass
class MoveResult:
    """Outcome of a move: the moved file (old filename) first, then rewritten importers."""
    message: str
    changed_files: List[str] = field(default_factory=list)


class ProjectModel(ABC):
    """
    Abstract base class for in-process project models.

    Subclasses must implement:
    - refresh_file(): Load or reload a file so the model sees its disk content
    - move(): Move a file and rewrite imports that point at it
    - save(): Persist every pending edit
    """

    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    @abstractmethod
    def refresh_file(self, path: str) -> None:
        """
        Make sure ``path`` is tracked with its current disk content.

        Raises:
            FileNotFoundError: If the file does not exist
        """

    @abstractmethod
    def move(self, old_filename: str, new_filename: str, overwrite: bool = False) -> MoveResult:
        """
        Move ``old_filename`` to ``new_filename`` and fix imports project-wide.

        Raises:
            ProjectModelError: If the move cannot be performed; nothing is
                modified when the destination exists and overwrite is False
        """

    @abstractmethod
    async def save(self) -> None:
        """Write all pending edits to disk."""

    def close(self) -> None:
        """Release resources held by the model."""

    def relative(self, path: str) -> str:
        return os.path.relpath(path, self.root)


def project_kind(path: str) -> str:
    """Which project model handles files like ``path``.

    Raises:
        ProjectModelError: If no model handles the extension
    """
    extension = os.path.splitext(path)[1].lower()
    if extension in PYTHON_EXTENSIONS:
        return "python"
    if extension in SCRIPT_EXTENSIONS:
        return "script"
    raise ProjectModelError(f"No project model handles '{extension or path}' files")


def create_project_model(root: str, path: str) -> ProjectModel:
    """Create the project model for ``path`` rooted at ``root``."""
    kind = project_kind(path)
    if kind == "python":
        from src.lspnav.refactor.rope_project import RopeProject

        return RopeProject(root)

    from src.lspnav.refactor.specifiers import SpecifierProject

    return SpecifierProject(root)
