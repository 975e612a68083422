"""
Move file command implementation.
"""

import logging
import textwrap
from dataclasses import dataclass
from typing import Optional

from src.lspnav.commands.base import Command, StatementParser
from src.lspnav.core.messages import CommandResult
from src.lspnav.exceptions import NavigationError
from src.lspnav.refactor.move import MoveRequest, move_file

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class MoveFileArgs:
    """Structured arguments for move_file command."""
    old_path: str
    new_path: str
    overwrite: bool = False
    root: Optional[str] = None


class MoveFileCommand(Command):
    """
    Command for moving a source file and updating every import of it.

    TypeScript and JavaScript files are handled by the specifier project
    model, Python modules by rope.
    """

    @property
    def name(self) -> str:
        """Return the command name."""
        return "move_file"

    def _build_parser(self) -> StatementParser:
        parser = StatementParser(prog="move_file")
        parser.add_argument("old_path", help="Current file path relative to the root")
        parser.add_argument("new_path", help="New file path relative to the root")
        parser.add_argument("--overwrite", action="store_true", help="Replace the destination if it exists")
        parser.add_argument("--root", help="Root directory; defaults to the workspace")
        return parser

    def _parse_args(self, statement: str, data: Optional[str] = None) -> MoveFileArgs:
        parsed_args = self._parse_statement(statement, data)
        return MoveFileArgs(
            old_path=parsed_args.old_path,
            new_path=parsed_args.new_path,
            overwrite=parsed_args.overwrite,
            root=parsed_args.root,
        )

    def validate(self, session, statement: str, data: Optional[str] = None) -> None:
        """Validate the move_file command statement."""
        self._parse_args(statement, data)

    def description(self) -> str:
        """Returns a short description of the command."""
        return "Move a file and update all import statements."

    def help(self) -> str:
        """Usage text with arguments and examples."""
        return textwrap.dedent(
            """
            Use the `move_file` command to move a source file and rewrite every import of it.

            Usage: ▶move_file OLD_PATH NEW_PATH [--overwrite] [--root <root>]■

            - OLD_PATH: Current file path, relative to the root
            - NEW_PATH: New file path, relative to the root
            - overwrite: Replace NEW_PATH if it already exists
            - root: Directory the paths are relative to. Default: the workspace

            Example:

            ▶move_file src/a.ts src/sub/a.ts■
            ✅Moved src/a.ts to src/sub/a.ts. Updated imports in 2 file(s).

            Changes:
              File moved: src/a.ts → src/sub/a.ts
              src/b.ts:
                @@ -1,1 +1,1 @@
                - import { x } from "./a";
                + import { x } from "./sub/a";■
            """
        )

    async def execute(
        self, session, statement: str, data: Optional[str] = None
    ) -> CommandResult:
        """Execute the move_file command."""
        try:
            args = self._parse_args(statement, data)
        except ValueError as e:
            return CommandResult(success=False, content=f"Invalid parameters: {str(e)}", error=e)

        request = MoveRequest(
            root=args.root or session.workspace,
            old_path=args.old_path,
            new_path=args.new_path,
            overwrite=args.overwrite,
        )

        try:
            output = await move_file(session, request)
        except NavigationError as e:
            logger.info(f"move_file failed: {e}")
            return CommandResult(success=False, content=str(e), error=e)

        return CommandResult(content=output.message, success=True, command_output=output)
