"""
``lspnav`` command line entry point.

Runs exactly one command (``hover`` or ``move_file``) in a fresh session and
prints its output. The exit status is 1 when the command fails.
"""

import argparse
import asyncio
import logging
import os
import shlex
import sys
from typing import List

from src.lsp.client import LSPError
from src.lsp.installer import language_for_path
from src.lspnav.core.messages import CommandResult
from src.lspnav.session import Session

logger = logging.getLogger(__name__)


class CLI:

    @classmethod
    def start(cls) -> None:
        args = cls._parse_args()
        try:
            result = asyncio.run(cls._run(args))
        except KeyboardInterrupt:
            logger.info("Interrupted")
            sys.exit(130)
        except Exception as e:
            logger.critical(f"lspnav {args.subcommand} crashed: {e}", exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        print(result.content)
        sys.exit(0 if result.success else 1)

    @staticmethod
    def _statement(args: argparse.Namespace) -> List[str]:
        """Shell statement equivalent to the parsed arguments."""
        if args.subcommand == "hover":
            words = ["hover", args.path, args.target]
            if args.line is not None:
                words.extend(["--line", args.line])
            return words

        words = ["move_file", args.old_path, args.new_path]
        if args.overwrite:
            words.append("--overwrite")
        return words

    @classmethod
    async def _run(cls, args: argparse.Namespace) -> CommandResult:
        builder = Session.builder().workspace(os.path.abspath(args.root or os.getcwd()))
        if args.settle_delay is not None:
            builder = builder.settle_delay(args.settle_delay)
        session = builder.initialize()

        try:
            if args.subcommand == "hover":
                language = args.language or language_for_path(args.path)
                try:
                    await session.start_language_server(language)
                except (ValueError, OSError, LSPError) as e:
                    logger.error(f"Could not start {language} language server: {e}")
                    return CommandResult(content=f"Could not start language server: {e}", success=False, error=e)

            return await session.shell.run(shlex.join(cls._statement(args)))
        finally:
            await session.close()

    @staticmethod
    def _parse_args() -> argparse.Namespace:
        parser = argparse.ArgumentParser(
            prog="lspnav",
            description="Semantic navigation and refactoring through language servers",
        )
        parser.add_argument("--root", help="project root that paths are relative to (default: cwd)")
        subcommands = parser.add_subparsers(dest="subcommand", required=True)

        hover = subcommands.add_parser("hover", help="show hover information for a symbol")
        hover.add_argument("path", help="file path relative to the root")
        hover.add_argument("target", help="text of the symbol to look up")
        hover.add_argument("--line", help="1-based line number, or text the line contains")
        hover.add_argument("--language", help="language server to start (default: from the extension)")
        hover.add_argument("--settle-delay", type=float, help="seconds to wait after syncing the document")

        move = subcommands.add_parser("move_file", help="move a file and update the imports that use it")
        move.add_argument("old_path", help="current path relative to the root")
        move.add_argument("new_path", help="destination path relative to the root")
        move.add_argument("--overwrite", action="store_true", help="replace an existing destination")
        move.set_defaults(settle_delay=None, language=None)

        return parser.parse_args()


def main() -> None:
    CLI.start()


if __name__ == "__main__":
    main()
