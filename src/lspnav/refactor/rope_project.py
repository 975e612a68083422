"""
Project model for Python code backed by rope.

Moving a module combines a module move into the destination package (when the
directory changes) and a rename of the module (when the filename changes).
rope rewrites every import of the module as part of each step. An existing
destination is only discarded once every step has succeeded.
"""

import logging
import os
import shutil
import tempfile
from typing import List, Tuple

from rope.base import libutils
from rope.base.exceptions import RopeError
from rope.base.project import Project
from rope.refactor.move import MoveModule
from rope.refactor.rename import Rename

from src.lspnav.exceptions import ProjectModelError
from src.lspnav.refactor.project import MoveResult, ProjectModel
from src.utils.files import write_text

logger = logging.getLogger(__name__)


def _is_within(path: str, root: str) -> bool:
    return os.path.commonpath([path, root]) == root


class RopeProject(ProjectModel):
    def __init__(self, root: str):
        super().__init__(root)
        # No .ropeproject folder is written into the user's tree
        self._project = Project(self.root, ropefolder=None, ignore_syntax_errors=True)

    def _resource(self, path: str, type=None):
        return libutils.path_to_resource(self._project, path, type)

    def refresh_file(self, path: str) -> None:
        path = os.path.abspath(path)
        if not os.path.isfile(path):
            raise FileNotFoundError(f"File not found: {path}")
        self._project.validate(self._resource(os.path.dirname(path), "folder"))

    def _ensure_package(self, directory: str) -> None:
        """Create ``directory`` and any missing parents as packages."""
        missing = []
        current = directory
        while not os.path.isdir(current) and _is_within(current, self.root):
            missing.append(current)
            current = os.path.dirname(current)

        for folder in reversed(missing):
            os.makedirs(folder, exist_ok=True)
            write_text(os.path.join(folder, "__init__.py"), "")
        if missing:
            logger.debug(f"Created packages: {missing}")
            self._project.validate()

    def _apply(self, changes, changed: List[str], moved_paths) -> None:
        for resource in changes.get_changed_resources():
            path = os.path.abspath(resource.real_path)
            if path not in moved_paths and path not in changed:
                changed.append(path)
        self._project.do(changes)

    def _plan(self, old: str, new: str) -> List[Tuple[str, str]]:
        """
        Ordered ``(step, path after step)`` pairs taking ``old`` to ``new``.

        When both the directory and the name change, the module is moved first
        and renamed inside the destination package, unless that intermediate
        path is taken; then the rename happens first. Raises when both are taken.
        """
        new_name = os.path.basename(new)
        rename_first = os.path.join(os.path.dirname(old), new_name)
        move_first = os.path.join(os.path.dirname(new), os.path.basename(old))

        if os.path.basename(old) == new_name:
            return [("move", new)]
        if os.path.dirname(old) == os.path.dirname(new):
            return [("rename", new)]
        if not os.path.exists(move_first):
            return [("move", move_first), ("rename", new)]
        if not os.path.exists(rename_first):
            return [("rename", rename_first), ("move", new)]
        raise ProjectModelError(
            f"Cannot move {self.relative(old)} to {self.relative(new)}: both "
            f"{self.relative(move_first)} and {self.relative(rename_first)} already exist"
        )

    def _set_aside(self, path: str) -> str:
        """Move an existing destination out of the project; returns the backup path."""
        backup = os.path.join(tempfile.mkdtemp(prefix="lspnav-"), os.path.basename(path))
        shutil.move(path, backup)
        self._project.validate()
        return backup

    def _restore(self, backup: str, path: str) -> None:
        if os.path.exists(path):
            logger.error(f"Cannot restore {path}: the path is in use; original kept at {backup}")
            return
        shutil.move(backup, path)
        shutil.rmtree(os.path.dirname(backup), ignore_errors=True)
        self._project.validate()

    def move(self, old_filename: str, new_filename: str, overwrite: bool = False) -> MoveResult:
        old = os.path.abspath(old_filename)
        new = os.path.abspath(new_filename)

        if old == new:
            raise ProjectModelError(f"Source and destination are the same file: {old}")
        if os.path.splitext(new)[1] != ".py":
            raise ProjectModelError(f"Python modules can only be moved to a .py file: {new}")
        if not _is_within(new, self.root):
            raise ProjectModelError(f"Destination is outside the project root {self.root}: {new}")
        if os.path.exists(new) and not overwrite:
            raise ProjectModelError(f"Destination file already exists: {new}. Use overwrite to replace it.")

        plan = self._plan(old, new)
        moved_paths = {old, new} | {path for _, path in plan}
        changed = [old]

        backup = self._set_aside(new) if os.path.exists(new) else None
        try:
            self._ensure_package(os.path.dirname(new))
            current = old
            for step, target in plan:
                if step == "rename":
                    name = os.path.splitext(os.path.basename(target))[0]
                    changes = Rename(self._project, self._resource(current)).get_changes(name)
                else:
                    destination = self._resource(os.path.dirname(target), "folder")
                    changes = MoveModule(self._project, self._resource(current)).get_changes(destination)
                self._apply(changes, changed, moved_paths)
                current = target
        except (RopeError, OSError) as e:
            if backup is not None:
                self._restore(backup, new)
            raise ProjectModelError(f"Failed to move {self.relative(old)}: {e}") from e

        if backup is not None:
            shutil.rmtree(os.path.dirname(backup), ignore_errors=True)

        message = f"Moved {self.relative(old)} to {self.relative(new)}"
        logger.info(f"{message} ({len(changed) - 1} importer(s) rewritten)")
        return MoveResult(message=message, changed_files=changed)

    async def save(self) -> None:
        # rope applies changes to disk in do(); closing flushes its caches
        self._project.close()

    def close(self) -> None:
        self._project.close()
