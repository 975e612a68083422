"""
Move a tracked source file and report which imports changed.

The move itself (file relocation plus import rewriting) is delegated to the
project model. The report is re-derived afterwards from the files' current
contents: every import line that plausibly points at the moved file is shown
next to a reconstruction of what it looked like before. The reconstruction is
heuristic and can be imprecise when aliasing or several import styles refer
to similarly named modules.
"""

import asyncio
import logging
import os
import re
from dataclasses import dataclass, field
from typing import List, Tuple

from src.lspnav.core.constants import IMPORTS_UPDATED_PLACEHOLDER
from src.lspnav.core.messages import CommandOutput
from src.lspnav.exceptions import DocumentReadError
from src.lspnav.refactor.project import PYTHON_EXTENSIONS, SCRIPT_EXTENSIONS, MoveResult
from src.lspnav.session import Session
from src.utils.files import read_text, relative_specifier, resolve_path, strip_extension

logger = logging.getLogger(__name__)

IMPORT_PATTERN = re.compile(r"""(?:import|from|require)\s*\(?['"`]([^'"`]+)['"`]\)?""")
PYTHON_IMPORT_PATTERN = re.compile(
    r"^\s*(?:from\s+(?P<package>\.+[\w.]*|[\w.]+)\s+import\b|import\s+(?P<module>[\w.]+))"
)
IMPORTED_NAME_PATTERN = re.compile(r"[A-Za-z_]\w*")


@dataclass
class MoveRequest:
    root: str
    old_path: str
    new_path: str
    overwrite: bool = False

    @property
    def old_filename(self) -> str:
        return resolve_path(self.root, self.old_path)

    @property
    def new_filename(self) -> str:
        return resolve_path(self.root, self.new_path)


@dataclass
class MoveFileOutput(CommandOutput):
    changed_files: List[str] = field(default_factory=list)


async def handle_move_file(session: Session, request: MoveRequest) -> MoveResult:
    """
    Move the file and persist every edit.

    Raises:
        DocumentReadError: If the source file cannot be loaded
        ProjectModelError: If the project model cannot perform the move
    """
    old_filename = request.old_filename
    project = session.project_for_file(request.root, old_filename)

    try:
        project.refresh_file(old_filename)
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentReadError(f"File not found: {old_filename}") from e

    result = project.move(old_filename, request.new_filename, overwrite=request.overwrite)
    await project.save()
    return result


def _resolve_import(import_path: str, file_dir: str, root: str, python: bool) -> str:
    if not python:
        return os.path.normpath(os.path.join(file_dir, import_path))

    module = import_path.lstrip(".")
    dots = len(import_path) - len(module)
    base = root if dots == 0 else file_dir
    for _ in range(dots - 1):
        base = os.path.dirname(base)
    return os.path.join(base, *[part for part in module.split(".") if part]) + ".py"


def _old_import_path(import_path: str, file_dir: str, old_filename: str, root: str, python: bool) -> str:
    """What ``import_path`` would have been while the file lived at ``old_filename``."""
    if python:
        if not import_path.startswith("."):
            return ".".join(os.path.relpath(strip_extension(old_filename), root).split(os.sep))
        parts = os.path.relpath(strip_extension(old_filename), file_dir).split(os.sep)
        ups = 0
        while parts and parts[0] == os.pardir:
            ups += 1
            parts.pop(0)
        return "." * (ups + 1) + ".".join(parts)

    old_specifier = strip_extension(relative_specifier(file_dir, old_filename))
    # Keep the extension style the import is written in
    extension = os.path.splitext(import_path)[1]
    if extension in SCRIPT_EXTENSIONS:
        return old_specifier + extension
    return old_specifier


def _split_module(module: str) -> Tuple[str, str]:
    """``pkg.sub.mod`` -> (``pkg.sub``, ``mod``); ``..mod`` -> (``..``, ``mod``)."""
    rest = module.lstrip(".")
    dots = module[: len(module) - len(rest)]
    parent, _, name = rest.rpartition(".")
    return dots + parent, name


def _imported_names(line: str, start: int) -> List[Tuple[str, int]]:
    """Names bound by a from-import, with their offsets in ``line``; aliases are skipped."""
    comment = line.find("#", start)
    names = []
    alias = False
    for match in IMPORTED_NAME_PATTERN.finditer(line, start, len(line) if comment < 0 else comment):
        if alias:
            alias = False
        elif match.group() == "as":
            alias = True
        else:
            names.append((match.group(), match.start()))
    return names


class _ImportScanner:
    """Reconstructs the pre-move form of import lines that point at the moved file."""

    def __init__(self, file: str, old_filename: str, new_filename: str, root: str):
        self.file_dir = os.path.dirname(file)
        self.python = file.lower().endswith(PYTHON_EXTENSIONS)
        self.old_filename = old_filename
        self.new_filename = os.path.normpath(new_filename)
        self.new_stem = os.path.splitext(os.path.basename(new_filename))[0]
        self.root = root

    def _points_at_new(self, import_path: str) -> bool:
        return _resolve_import(import_path, self.file_dir, self.root, self.python) == self.new_filename

    def _old_path(self, import_path: str) -> str:
        return _old_import_path(import_path, self.file_dir, self.old_filename, self.root, self.python)

    def old_lines(self, line: str) -> List[str]:
        if self.python:
            return self._old_python_lines(line)

        return [
            line.replace(import_path, self._old_path(import_path), 1)
            for import_path in IMPORT_PATTERN.findall(line)
            if self._points_at_new(import_path) or self.new_stem in import_path
        ]

    def _old_python_lines(self, line: str) -> List[str]:
        match = PYTHON_IMPORT_PATTERN.match(line)
        if not match:
            return []
        group = "package" if match.group("package") else "module"
        module = match.group(group)
        start, end = match.span(group)

        if self._points_at_new(module) or (module.strip(".") and self.new_stem in module):
            return [line[:start] + self._old_path(module) + line[end:]]
        if group == "module":
            return []

        # from <package> import <name>, where <name> may be the moved module
        for name, offset in _imported_names(line, match.end()):
            joined = module + name if module.endswith(".") else f"{module}.{name}"
            if name != self.new_stem and not self._points_at_new(joined):
                continue
            old_parent, old_name = _split_module(self._old_path(joined))
            if not old_parent:
                return [f"{line[: len(line) - len(line.lstrip())]}import {old_name}"]
            renamed = line[:offset] + old_name + line[offset + len(name):]
            return [renamed[:start] + old_parent + renamed[end:]]
        return []

    def changes(self, text: str) -> List[str]:
        fragments = []
        for number, line in enumerate(text.split("\n"), start=1):
            for old_line in self.old_lines(line):
                if old_line != line:
                    fragments.extend([
                        f"    @@ -{number},1 +{number},1 @@",
                        f"    - {old_line}",
                        f"    + {line}",
                    ])
        return fragments


async def analyze_import_changes(file: str, old_filename: str, new_filename: str, root: str) -> List[str]:
    """
    Diff fragment lines for the imports in ``file`` that point at the moved file.

    Never empty: a file whose imports cannot be matched, or that cannot be
    read, gets the generic placeholder. The read happens in a worker thread so
    the analyses of several files overlap.
    """
    try:
        text = await asyncio.to_thread(read_text, file)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not re-read {file} for the move report: {e}")
        return [IMPORTS_UPDATED_PLACEHOLDER]

    fragments = _ImportScanner(file, old_filename, new_filename, root).changes(text)
    return fragments or [IMPORTS_UPDATED_PLACEHOLDER]


async def format_move_file_result(result: MoveResult, request: MoveRequest) -> str:
    """Render the caller-facing move report."""
    old_filename = request.old_filename
    new_filename = request.new_filename
    root = os.path.abspath(request.root)

    output = [
        f"{result.message}. Updated imports in {len(result.changed_files)} file(s).",
        "",
        "Changes:",
    ]

    async def describe(file: str) -> List[str]:
        if file in (old_filename, new_filename):
            return [
                f"  File moved: {os.path.relpath(old_filename, root)} → {os.path.relpath(new_filename, root)}"
            ]
        lines = await analyze_import_changes(file, old_filename, new_filename, root)
        return [f"  {os.path.relpath(file, root)}:"] + lines

    blocks = await asyncio.gather(*(describe(file) for file in result.changed_files))
    for block in blocks:
        output.extend(block)
    return "\n".join(output)


async def move_file(session: Session, request: MoveRequest) -> MoveFileOutput:
    """Move a file, persist the edits and build the report."""
    result = await handle_move_file(session, request)
    report = await format_move_file_result(result, request)
    logger.info(f"Move {request.old_path} -> {request.new_path}: {len(result.changed_files)} file(s) changed")
    return MoveFileOutput(name="move_file", message=report, changed_files=list(result.changed_files))
