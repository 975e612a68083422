"""
Exceptions module.

This module defines the error taxonomy used throughout lspnav. Everything a
caller can trigger with a bad request derives from NavigationError and is
turned into a failed CommandResult; FatalError is reserved for setup and
programming errors.
"""

from typing import Optional


class FatalError(Exception):
    """
    A fatal error that should not be caught and converted to a CommandResult.

    These errors represent unrecoverable conditions or programming errors that
    should be propagated up the call stack rather than being handled as a
    normal command failure.
    """
    pass


class NavigationError(Exception):
    """Base class for failures reported back to the caller."""
    pass


class ResolutionError(NavigationError):
    """A location descriptor could not be turned into an exact position."""

    def __init__(self, message: str, file_path: str, line: Optional[int] = None):
        super().__init__(message)
        self.file_path = file_path
        self.line = line


class LineOutOfRangeError(ResolutionError):
    pass


class LineNotFoundError(ResolutionError):
    pass


class SymbolNotFoundOnLineError(ResolutionError):
    pass


class TargetNotFoundInFileError(ResolutionError):
    pass


class SessionError(NavigationError):
    """No usable language server session."""
    pass


class DocumentReadError(NavigationError):
    """A source file could not be read."""
    pass


class ProjectModelError(NavigationError):
    """The project model refused or failed to perform a structural edit."""
    pass
