"""
Project model for ES modules and CommonJS.

Tracks the script files under a project root and rewrites quoted relative
module specifiers (``from "./a"``, ``import("./a")``, ``require("./a")``)
when a file moves. Each specifier keeps the style it was written in:
extensionless, explicit extension, directory index or ``.js`` spelling for a
TypeScript source.
"""

import logging
import os
import re
from typing import Callable, Dict, Optional, Tuple

from src.lspnav.exceptions import ProjectModelError
from src.lspnav.refactor.project import SCRIPT_EXTENSIONS, MoveResult, ProjectModel
from src.utils.files import read_text, relative_specifier, strip_extension, write_text

logger = logging.getLogger(__name__)

SPECIFIER_PATTERN = re.compile(
    r"""(?<![\w$.])(?:from\s*|import\s*\(?\s*|require\s*\(\s*)(?P<quote>['"])(?P<specifier>[^'"\r\n]+)(?P=quote)"""
)

IGNORED_DIRECTORIES = {"node_modules", ".git"}

# Runtime extension written in an import -> source extensions it may refer to
SOURCE_FOR_RUNTIME_EXTENSION = {
    ".js": (".ts", ".tsx"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}

# How a specifier reached its file
EXACT, BARE, INDEX, RUNTIME_ALIAS = "exact", "bare", "index", "runtime-alias"


def is_relative_specifier(specifier: str) -> bool:
    return specifier in (".", "..") or specifier.startswith("./") or specifier.startswith("../")


def format_specifier(target: str, style: str, from_dir: str, original: str) -> str:
    """Specifier reaching ``target`` from ``from_dir`` written in ``style``."""
    if style == EXACT:
        return relative_specifier(from_dir, target)
    if style == INDEX and os.path.splitext(os.path.basename(target))[0] == "index":
        return relative_specifier(from_dir, os.path.dirname(target))
    if style == RUNTIME_ALIAS:
        return relative_specifier(from_dir, strip_extension(target)) + os.path.splitext(original)[1]
    return relative_specifier(from_dir, strip_extension(target))


class SpecifierProject(ProjectModel):
    """
    In-memory project of script files.

    Edits computed by move() are held until save(), which writes the
    rewritten importers, writes the moved file at its destination and
    removes the source.
    """

    def __init__(self, root: str):
        super().__init__(root)
        self._files: Dict[str, str] = {}
        self._pending_writes: Dict[str, str] = {}
        self._pending_move: Optional[Tuple[str, str, str]] = None

    @property
    def tracked_files(self):
        return sorted(self._files)

    def refresh_file(self, path: str) -> None:
        path = os.path.abspath(path)
        self._files[path] = read_text(path)

    def _scan(self) -> None:
        """Reload every script file under the root."""
        files: Dict[str, str] = {}
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRECTORIES)
            for name in filenames:
                if os.path.splitext(name)[1].lower() not in SCRIPT_EXTENSIONS:
                    continue
                path = os.path.join(dirpath, name)
                try:
                    files[path] = read_text(path)
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning(f"Skipping unreadable file {path}: {e}")
        self._files = files
        logger.debug(f"Scanned {len(files)} script files under {self.root}")

    def _exists(self, path: str) -> bool:
        return path in self._files or os.path.isfile(path)

    def resolve_specifier(self, specifier: str, from_dir: str) -> Optional[Tuple[str, str]]:
        """
        File a relative specifier refers to, and the style it was written in.

        Returns None for package specifiers and for paths that resolve to nothing.
        """
        if not is_relative_specifier(specifier):
            return None

        base = os.path.normpath(os.path.join(from_dir, specifier))
        if self._exists(base):
            return base, EXACT
        for extension in SCRIPT_EXTENSIONS:
            if self._exists(base + extension):
                return base + extension, BARE
        for extension in SCRIPT_EXTENSIONS:
            index = os.path.join(base, "index" + extension)
            if self._exists(index):
                return index, INDEX

        stem, extension = os.path.splitext(base)
        for source_extension in SOURCE_FOR_RUNTIME_EXTENSION.get(extension, ()):
            if self._exists(stem + source_extension):
                return stem + source_extension, RUNTIME_ALIAS
        return None

    def _rewrite(self, text: str, from_dir: str, retarget: Callable[[str], Optional[str]], to_dir: str) -> str:
        """
        Rewrite specifiers in ``text``.

        ``retarget`` maps a resolved target to its new location, or returns
        None to leave the specifier alone. Specifiers are resolved from
        ``from_dir`` and re-emitted relative to ``to_dir``.
        """

        def replace(match: "re.Match") -> str:
            specifier = match.group("specifier")
            resolved = self.resolve_specifier(specifier, from_dir)
            if resolved is None:
                return match.group(0)
            target, style = resolved
            new_target = retarget(target)
            if new_target is None:
                return match.group(0)

            new_specifier = format_specifier(new_target, style, to_dir, specifier)
            if new_specifier == specifier:
                return match.group(0)
            start = match.start("specifier") - match.start()
            end = match.end("specifier") - match.start()
            return match.group(0)[:start] + new_specifier + match.group(0)[end:]

        return SPECIFIER_PATTERN.sub(replace, text)

    def move(self, old_filename: str, new_filename: str, overwrite: bool = False) -> MoveResult:
        old = os.path.abspath(old_filename)
        new = os.path.abspath(new_filename)

        if old not in self._files:
            raise ProjectModelError(f"File is not tracked by the project: {old}")
        if old == new:
            raise ProjectModelError(f"Source and destination are the same file: {old}")
        if os.path.exists(new) and not overwrite:
            raise ProjectModelError(f"Destination file already exists: {new}. Use overwrite to replace it.")

        self._scan()
        if old not in self._files:
            self.refresh_file(old)

        self._pending_writes = {}
        changed = [old]

        def to_new_location(target: str) -> Optional[str]:
            return new if target == old else None

        for path in sorted(self._files):
            if path in (old, new):
                continue
            directory = os.path.dirname(path)
            text = self._files[path]
            updated = self._rewrite(text, directory, to_new_location, directory)
            if updated != text:
                self._pending_writes[path] = updated
                changed.append(path)

        # The moved file's own relative imports now start from its new directory
        moved_text = self._rewrite(
            self._files[old],
            os.path.dirname(old),
            lambda target: new if target == old else target,
            os.path.dirname(new),
        )
        self._pending_move = (old, new, moved_text)

        message = f"Moved {self.relative(old)} to {self.relative(new)}"
        logger.info(f"{message} ({len(changed) - 1} importer(s) rewritten)")
        return MoveResult(message=message, changed_files=changed)

    async def save(self) -> None:
        for path, text in self._pending_writes.items():
            write_text(path, text)
            self._files[path] = text

        if self._pending_move is not None:
            old, new, text = self._pending_move
            write_text(new, text)
            os.remove(old)
            self._files.pop(old, None)
            self._files[new] = text

        logger.info(
            f"Saved {len(self._pending_writes) + (1 if self._pending_move else 0)} file(s) under {self.root}"
        )
        self._pending_writes = {}
        self._pending_move = None
