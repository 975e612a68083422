"""
Message classes for command invocations and their results.

Results are rendered for the caller as ``<prefix><content>■`` where the prefix
is ✅ on success and ❌ on failure. Marker characters inside the content are
escaped so a result can never be mistaken for the end of another one.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from src.lspnav.core.constants import (
    COMMAND_END,
    COMMAND_START,
    ERROR_PREFIX,
    STDIN_SEPARATOR,
    SUCCESS_PREFIX,
)

_MARKERS = re.compile(
    "[" + re.escape(COMMAND_START + COMMAND_END + STDIN_SEPARATOR + ERROR_PREFIX + SUCCESS_PREFIX) + "]"
)


@dataclass
class ParsedCommand:
    """A command input split into the command name, its arguments and piped data."""
    name: str
    statement: str
    data: Optional[str] = None


def escape_markers(content: str) -> str:
    r"""Replace marker characters with ``\u<hex>`` sequences."""
    return _MARKERS.sub(lambda match: f"\\u{ord(match.group(0)):x}", content)


@dataclass
class CommandOutput:
    """Structured output of a command.

    Commands extend this class to carry typed data next to the message.
    """
    name: str
    message: str


@dataclass
class CommandResult:
    """Outcome of executing a command."""
    content: str
    success: bool
    error: Optional[Exception] = None
    command_call: Optional[ParsedCommand] = None
    command_output: Optional[CommandOutput] = None

    def __str__(self) -> str:
        return self.model_text()

    def model_text(self) -> str:
        prefix = SUCCESS_PREFIX if self.success else ERROR_PREFIX
        return f"{prefix}{escape_markers(str(self.content))}{COMMAND_END}"

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form; the exception is left out."""
        return {
            "type": "CommandResult",
            "value": self.content,
            "success": self.success,
        }
