"""
Command interface.

A command reads a shell-style statement (``hover src/foo.ts bar --line 5``),
runs against the session it is handed and answers with a CommandResult.
"""

import argparse
import logging
import shlex
from abc import ABC, abstractmethod
from typing import Optional

from src.lspnav.core.messages import CommandResult
from src.lspnav.session import Session

logger = logging.getLogger(__name__)


class StatementParser(argparse.ArgumentParser):
    """Parser for command statements. Errors raise ValueError rather than exiting."""

    def __init__(self, prog: str, **kwargs):
        super().__init__(prog=prog, add_help=False, exit_on_error=False, **kwargs)

    def error(self, message):
        raise ValueError(f"{self.prog}: {message}")


class Command(ABC):
    """
    A named operation the shell can dispatch to.

    Implementations supply ``name``, ``description()``, ``help()``, the
    statement parser and the async ``execute()``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def description(self) -> str:
        """One-line summary."""

    @abstractmethod
    def help(self) -> str:
        """Usage, arguments and examples."""

    @abstractmethod
    def _build_parser(self) -> StatementParser:
        ...

    def _parse_statement(self, statement: str, data: Optional[str] = None) -> argparse.Namespace:
        """
        Raises:
            ValueError: If data is supplied or the statement does not match the parser
        """
        if data:
            raise ValueError(f"The {self.name} command does not accept data input")

        try:
            namespace, extra = self._build_parser().parse_known_args(shlex.split(statement))
        except argparse.ArgumentError as e:
            raise ValueError(str(e)) from e
        if extra:
            raise ValueError(f"Unrecognized arguments: {' '.join(extra)}")
        return namespace

    def validate(self, session: Session, statement: str, data: Optional[str] = None) -> None:
        self._parse_statement(statement, data)

    @abstractmethod
    async def execute(
        self, session: Session, statement: str, data: Optional[str] = None
    ) -> CommandResult:
        """
        Run the command.

        Recoverable problems come back as ``CommandResult(success=False)``;
        FatalError is raised for anything that should stop the caller.
        """

    def describe(self) -> str:
        return self.help()
