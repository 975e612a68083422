"""
Hover lookup against the session's language server.

Reads the requested file, resolves the location descriptor to an exact
position, synchronizes the file's current text into the server, waits for
the server to settle and issues a single hover request. The server's answer
is normalized into a HoverOutput whose message says where the lookup
happened.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from src.lsp.client import LSPError
from src.lsp.models import (
    HoverContents,
    LspHoverResult,
    LspPosition,
    LspRange,
    MarkedString,
    MarkupContent,
)
from src.lspnav.core.messages import CommandOutput
from src.lspnav.exceptions import DocumentReadError, SessionError
from src.lspnav.session import Session
from src.utils.files import file_uri, read_text, resolve_path
from src.utils.positions import LocationDescriptor, ResolvedPosition, resolve_position

logger = logging.getLogger(__name__)


@dataclass
class HoverInfo:
    """Normalized hover payload; ``range`` is one-based."""
    contents: str
    range: LspRange


@dataclass
class HoverOutput(CommandOutput):
    """Result of a hover lookup. ``hover`` is None when the server had nothing."""
    hover: Optional[HoverInfo] = None

    def render(self) -> str:
        """Caller-facing text: the message, then the hover body after a blank line."""
        messages = [self.message]
        if self.hover:
            messages.append(self.hover.contents)
        return "\n\n".join(messages)


def format_hover_contents(contents: HoverContents) -> str:
    """Flatten any hover contents shape into plain text."""
    if isinstance(contents, str):
        return contents
    if isinstance(contents, MarkupContent):
        return contents.value
    if isinstance(contents, list):
        return "\n".join(
            fragment.value if isinstance(fragment, MarkedString) else fragment
            for fragment in contents
        )
    return ""


def _whole_file_range(lines: List[str]) -> LspRange:
    # Stand-in when the server gives no span: line 1 through the last line
    return LspRange(
        start=LspPosition(line=1, character=1),
        end=LspPosition(line=len(lines), character=len(lines[-1]) if lines else 0),
    )


def format_hover_result(
    result: Optional[LspHoverResult],
    descriptor: LocationDescriptor,
    position: ResolvedPosition,
    lines: List[str],
) -> HoverOutput:
    """Build the HoverOutput for a server answer at ``position``."""
    location = f"{descriptor.file_path}:{position.line_number}:{position.column_number}"

    if result is None:
        return HoverOutput(
            name="hover",
            message=f'No hover information available for "{descriptor.target}" at {location}',
            hover=None,
        )

    hover_range = result.range.shifted(1) if result.range else _whole_file_range(lines)
    return HoverOutput(
        name="hover",
        message=f'Hover information for "{descriptor.target}" at {location}',
        hover=HoverInfo(contents=format_hover_contents(result.contents), range=hover_range),
    )


def read_document_lines(path: str) -> Tuple[str, List[str]]:
    """Read ``path`` and return ``(text, lines)``.

    Raises:
        DocumentReadError: If the file is missing, a directory or not UTF-8 text
    """
    try:
        text = read_text(path)
    except (FileNotFoundError, IsADirectoryError) as e:
        raise DocumentReadError(str(e)) from e
    except PermissionError as e:
        raise DocumentReadError(f"Permission denied: {path}") from e
    except UnicodeDecodeError as e:
        raise DocumentReadError(f"File is not text or has unknown encoding: {path}") from e
    except OSError as e:
        raise DocumentReadError(f"Error reading file {path}: {e}") from e
    return text, text.split("\n")


async def get_hover(session: Session, descriptor: LocationDescriptor) -> HoverOutput:
    """
    Get hover information for the symbol described by ``descriptor``.

    Raises:
        SessionError: If no language server is attached or the server fails
        DocumentReadError: If the file cannot be read
        ResolutionError: If the location cannot be resolved
    """
    client = session.lsp_client

    absolute_path = resolve_path(descriptor.root, descriptor.file_path)
    text, lines = read_document_lines(absolute_path)
    position = resolve_position(lines, descriptor)
    uri = file_uri(absolute_path)

    try:
        await client.open_document(uri, text)
        # Give the server time to process the document
        await asyncio.sleep(session.settle_delay)
        result = await client.hover(
            uri, LspPosition(line=position.line_index, character=position.character_index)
        )
    except LSPError as e:
        raise SessionError(str(e)) from e

    logger.info(
        f"Hover for {descriptor.target!r} at {descriptor.file_path}:{position.line_number}:"
        f"{position.column_number}: {'found' if result else 'none'}"
    )
    return format_hover_result(result, descriptor, position, lines)
