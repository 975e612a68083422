"""
Command shell.

The Shell owns the registry of commands available in a session and turns a
command input such as ``▶hover src/foo.ts bar --line 5■`` into a call of the
matching command. Anything a command raises, other than FatalError, comes back
as a failed CommandResult.
"""

import logging
import traceback
from typing import Dict, List, Optional

from src.lspnav.commands.base import Command
from src.lspnav.commands.hover import HoverCommand
from src.lspnav.commands.move_file import MoveFileCommand
from src.lspnav.core.constants import COMMAND_END, COMMAND_START, STDIN_SEPARATOR
from src.lspnav.core.messages import CommandResult, ParsedCommand
from src.lspnav.exceptions import FatalError
from src.lspnav.session import Session

logger = logging.getLogger(__name__)


def _strip_markers(command_input: str) -> str:
    command_input = command_input.strip()
    if command_input.startswith(COMMAND_START):
        command_input = command_input[len(COMMAND_START):]
    if command_input.endswith(COMMAND_END):
        command_input = command_input[: -len(COMMAND_END)]
    return command_input


class Shell:
    """Registry and dispatcher for the commands of one session."""

    def __init__(self, session: Session):
        self._session = session
        self._registry: Dict[str, Command] = {}
        self._register_builtin_commands()

    def register_command(self, command: Command) -> None:
        """
        Add ``command`` under its name.

        Raises:
            ValueError: If the name is taken
        """
        if command.name in self._registry:
            raise ValueError(f"Command '{command.name}' is already registered")
        self._registry[command.name] = command
        logger.debug(f"Registered command: {command.name}")

    def register_commands(self, commands: List[Command]) -> None:
        for command in commands:
            self.register_command(command)

    def _get_command(self, command_name: str) -> Command:
        try:
            return self._registry[command_name]
        except KeyError:
            raise ValueError(f"Command '{command_name}' is not registered") from None

    def list_commands(self) -> List[str]:
        return list(self._registry)

    def _parse(self, command_input: str) -> ParsedCommand:
        """
        Split ``name [args] [｜data]`` into its parts; ▶ and ■ markers are optional.

        Raises:
            ValueError: If the input is empty or names an unknown command
        """
        statement, separator, data = _strip_markers(command_input).partition(STDIN_SEPARATOR)
        name, _, arguments = statement.strip().partition(" ")
        if not name:
            raise ValueError("Empty command input")
        self._get_command(name)
        return ParsedCommand(name=name, statement=arguments.strip(), data=(data.strip() or None) if separator else None)

    def validate(self, command_input: str) -> None:
        """
        Raises:
            ValueError: If the input does not parse or the command rejects it
        """
        parsed = self._parse(command_input)
        self._get_command(parsed.name).validate(self._session, parsed.statement, parsed.data)

    async def execute(
        self, command_name: str, statement: str, data: Optional[str] = None
    ) -> CommandResult:
        """Run one command. FatalError propagates; every other error is a failed result."""
        try:
            command = self._get_command(command_name)
            return await command.execute(self._session, statement, data)
        except FatalError:
            raise
        except Exception as e:
            logger.error(f"Error executing command {command_name}: {e}\n{traceback.format_exc()}")
            return CommandResult(content=str(e), success=False, error=e)

    async def run(self, command_input: str) -> CommandResult:
        """Parse and execute a single command input."""
        try:
            parsed = self._parse(command_input)
        except ValueError as e:
            return CommandResult(content=str(e), success=False, error=e)

        result = await self.execute(parsed.name, parsed.statement, parsed.data)
        result.command_call = parsed
        if result.success:
            logger.info(f"Command {parsed.name} succeeded")
        else:
            logger.warning(f"Command {parsed.name} failed: {result.content}")
        return result

    def describe(self, command_name: str) -> str:
        """
        Full help text of a command.

        Raises:
            ValueError: If the command is not registered
        """
        return self._get_command(command_name).describe()

    def _register_builtin_commands(self) -> None:
        self.register_commands([HoverCommand(), MoveFileCommand()])
        logger.debug(f"Built-in commands: {', '.join(self.list_commands())}")
