#!/usr/bin/env python3
"""
Data models for LSP requests and responses.

This module contains dataclasses representing the documents exchanged with a
language server and the structured results of hover requests. Positions are
zero-based as on the wire unless a docstring says otherwise.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True)
class LspPosition:
    """Position in a document expressed as line and character offset."""
    line: int
    character: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class LspRange:
    """Range in a document expressed as start and end positions."""
    start: LspPosition
    end: LspPosition

    def shifted(self, offset: int) -> "LspRange":
        """Return a copy with every coordinate moved by ``offset``."""
        return LspRange(
            start=LspPosition(self.start.line + offset, self.start.character + offset),
            end=LspPosition(self.end.line + offset, self.end.character + offset),
        )


@dataclass
class TextDocumentItem:
    """A document as pushed to the language server: URI plus its full text."""
    uri: str
    text: str
    language_id: str = "plaintext"
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "languageId": self.language_id,
            "version": self.version,
            "text": self.text,
        }


@dataclass
class MarkedString:
    """A hover fragment with an optional code language."""
    value: str
    language: Optional[str] = None


@dataclass
class MarkupContent:
    """Structured hover content (``plaintext`` or ``markdown``)."""
    value: str
    kind: str = "plaintext"


# Every shape a server may answer a hover request with
HoverContents = Union[str, List[Union[str, MarkedString]], MarkupContent]


@dataclass
class LspHoverResult:
    """Result of a hover request."""
    contents: HoverContents
    range: Optional[LspRange] = None


def parse_position(data: Dict[str, Any]) -> LspPosition:
    return LspPosition(line=int(data.get("line", 0)), character=int(data.get("character", 0)))


def parse_range(data: Optional[Dict[str, Any]]) -> Optional[LspRange]:
    """Convert a wire range into an LspRange, or None when absent or malformed."""
    if not isinstance(data, dict) or "start" not in data or "end" not in data:
        return None
    return LspRange(start=parse_position(data["start"]), end=parse_position(data["end"]))


def parse_hover_contents(contents: Any) -> HoverContents:
    """Map the wire ``contents`` field onto one of the HoverContents shapes."""
    if isinstance(contents, str):
        return contents
    if isinstance(contents, list):
        fragments: List[Union[str, MarkedString]] = []
        for item in contents:
            if isinstance(item, str):
                fragments.append(item)
            elif isinstance(item, dict):
                fragments.append(MarkedString(value=item.get("value", ""), language=item.get("language")))
        return fragments
    if isinstance(contents, dict):
        if "kind" in contents:
            return MarkupContent(value=contents.get("value", ""), kind=contents["kind"])
        # A lone MarkedString object: {language, value}
        return [MarkedString(value=contents.get("value", ""), language=contents.get("language"))]
    return ""


def parse_hover_result(result: Optional[Dict[str, Any]]) -> Optional[LspHoverResult]:
    """Convert the ``result`` member of a hover response. ``None`` means no information."""
    if not isinstance(result, dict) or "contents" not in result:
        return None
    return LspHoverResult(
        contents=parse_hover_contents(result.get("contents")),
        range=parse_range(result.get("range")),
    )
