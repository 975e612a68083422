"""
Position resolution.

Turns a loosely specified location (a file, an optional line given either as
a 1-based number or as text found on that line, and a target string) into the
exact zero-based line/character coordinate a language server expects.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from src.lspnav.exceptions import (
    LineNotFoundError,
    LineOutOfRangeError,
    ResolutionError,
    SymbolNotFoundOnLineError,
    TargetNotFoundInFileError,
)

logger = logging.getLogger(__name__)

# Characters that continue an identifier in the languages we serve
_IDENTIFIER_CHAR = r"[A-Za-z0-9_$]"


@dataclass
class LocationDescriptor:
    """Caller-supplied description of where in a file to act."""
    root: str
    file_path: str
    target: str
    line: Optional[Union[int, str]] = None


@dataclass(frozen=True)
class ResolvedPosition:
    """Zero-based coordinate inside a document."""
    line_index: int
    character_index: int

    @property
    def line_number(self) -> int:
        return self.line_index + 1

    @property
    def column_number(self) -> int:
        return self.character_index + 1


def parse_line_number(lines: Sequence[str], line: Union[int, str], file_path: str) -> int:
    """
    Convert a line spec into a zero-based line index.

    Args:
        lines: Document lines
        line: 1-based line number, or text that must appear on the line
        file_path: Used in error messages

    Raises:
        LineOutOfRangeError: If a numeric line is outside [1, len(lines)]
        LineNotFoundError: If no line contains the given text
    """
    if isinstance(line, bool) or not isinstance(line, (int, str)):
        raise LineOutOfRangeError(f"Invalid line number: {line!r} in {file_path}", file_path)

    if isinstance(line, int):
        if line < 1 or line > len(lines):
            raise LineOutOfRangeError(
                f"Line number {line} is out of range (file has {len(lines)} lines) in {file_path}",
                file_path,
                line,
            )
        return line - 1

    for index, text in enumerate(lines):
        if line in text:
            return index

    raise LineNotFoundError(f'Line containing "{line}" not found in {file_path}', file_path)


def find_symbol_in_line(line_text: str, target: str) -> Optional[int]:
    """
    Character index of ``target`` on a line, preferring a standalone token.

    ``foo`` matches the standalone ``foo`` in ``foobar(foo)`` rather than the
    prefix of ``foobar``. Falls back to the first raw occurrence when the
    target never appears as a whole token. Returns None if absent.
    """
    if not target:
        return None

    token = re.search(
        rf"(?<!{_IDENTIFIER_CHAR}){re.escape(target)}(?!{_IDENTIFIER_CHAR})", line_text
    )
    if token:
        return token.start()

    index = line_text.find(target)
    return index if index >= 0 else None


def find_target_in_file(lines: Sequence[str], target: str, file_path: str) -> ResolvedPosition:
    """
    Locate the first line containing ``target`` and the symbol's offset on it.

    Raises:
        TargetNotFoundInFileError: If no line contains the target
    """
    for index, text in enumerate(lines):
        if target in text:
            return ResolvedPosition(line_index=index, character_index=find_symbol_in_line(text, target))

    raise TargetNotFoundInFileError(f'Target text "{target}" not found in {file_path}', file_path)


def resolve_position(lines: List[str], descriptor: LocationDescriptor) -> ResolvedPosition:
    """
    Resolve a LocationDescriptor against the document's lines.

    Raises:
        ResolutionError: If the descriptor cannot be resolved (subclass says why)
    """
    file_path = descriptor.file_path
    if not descriptor.target:
        raise ResolutionError(f"Target text must not be empty ({file_path})", file_path)

    if descriptor.line is None:
        position = find_target_in_file(lines, descriptor.target, file_path)
        logger.debug(f'Found "{descriptor.target}" on line {position.line_number} of {file_path}')
        return position

    line_index = parse_line_number(lines, descriptor.line, file_path)
    character_index = find_symbol_in_line(lines[line_index], descriptor.target)
    if character_index is None:
        raise SymbolNotFoundOnLineError(
            f'Symbol "{descriptor.target}" not found on line {line_index + 1} in {file_path}',
            file_path,
            line_index + 1,
        )
    return ResolvedPosition(line_index=line_index, character_index=character_index)
