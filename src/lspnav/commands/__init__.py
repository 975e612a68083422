"""
Caller-facing commands.
"""

from src.lspnav.commands.base import Command
from src.lspnav.commands.hover import HoverCommand
from src.lspnav.commands.move_file import MoveFileCommand

__all__ = ["Command", "HoverCommand", "MoveFileCommand"]
