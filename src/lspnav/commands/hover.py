"""
Hover command implementation.

This module provides the HoverCommand class for looking up hover information
(types, signatures, documentation) for a symbol through the session's
language server.
"""

import logging
import textwrap
from dataclasses import dataclass
from typing import Optional, Union

from src.lspnav.commands.base import Command, StatementParser
from src.lspnav.core.messages import CommandResult
from src.lspnav.exceptions import NavigationError
from src.lspnav.navigation import get_hover
from src.utils.positions import LocationDescriptor

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class HoverArgs:
    """Structured arguments for hover command."""
    path: str
    target: str
    line: Optional[Union[int, str]] = None
    root: Optional[str] = None


def parse_line_spec(value: Optional[str]) -> Optional[Union[int, str]]:
    """A LINE that reads as an integer is a line number, anything else is a substring."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return value


class HoverCommand(Command):
    """
    Command for getting hover information at a symbol.

    Features:
    - Finds the symbol by line number, by a substring of its line or by
      searching the whole file
    - Prefers whole-token matches so `foo` does not hit inside `foobar`
    - Re-sends the file's current text to the server before every query
    """

    @property
    def name(self) -> str:
        """Return the command name."""
        return "hover"

    def _build_parser(self) -> StatementParser:
        parser = StatementParser(prog="hover")
        parser.add_argument("path", help="File path relative to the root")
        parser.add_argument("target", help="Text of the symbol to look up")
        parser.add_argument("--line", help="Line number (1-based) or text contained in the line")
        parser.add_argument("--root", help="Root directory; defaults to the workspace")
        return parser

    def _parse_args(self, statement: str, data: Optional[str] = None) -> HoverArgs:
        parsed_args = self._parse_statement(statement, data)
        if not parsed_args.target:
            raise ValueError("TARGET must not be empty")
        return HoverArgs(
            path=parsed_args.path,
            target=parsed_args.target,
            line=parse_line_spec(parsed_args.line),
            root=parsed_args.root,
        )

    def validate(self, session, statement: str, data: Optional[str] = None) -> None:
        """Validate the hover command statement."""
        self._parse_args(statement, data)

    def description(self) -> str:
        """Returns a short description of the command."""
        return "Show type and documentation for a symbol."

    def help(self) -> str:
        """Usage text with arguments and examples."""
        return textwrap.dedent(
            """
            Use the `hover` command to get type signatures and documentation for a symbol.

            Usage: ▶hover PATH TARGET [--line <line>] [--root <root>]■

            - PATH: File path, relative to the root
            - TARGET: Text of the symbol to look up
            - line: Line number (1-based) or text contained in the line. When omitted
              the first line containing TARGET is used.
            - root: Directory the path is relative to. Default: the workspace

            Examples:

            ▶hover src/foo.ts bar■
            ✅Hover information for "bar" at src/foo.ts:5:10

            function bar(): number■

            ▶hover src/foo.ts bar --line "export const"■
            ✅No hover information available for "bar" at src/foo.ts:2:14■
            """
        )

    async def execute(
        self, session, statement: str, data: Optional[str] = None
    ) -> CommandResult:
        """Execute the hover command."""
        try:
            args = self._parse_args(statement, data)
        except ValueError as e:
            return CommandResult(success=False, content=f"Invalid parameters: {str(e)}", error=e)

        descriptor = LocationDescriptor(
            root=args.root or session.workspace,
            file_path=args.path,
            target=args.target,
            line=args.line,
        )

        try:
            output = await get_hover(session, descriptor)
        except NavigationError as e:
            logger.info(f"hover failed: {e}")
            return CommandResult(success=False, content=str(e), error=e)

        return CommandResult(content=output.render(), success=True, command_output=output)
