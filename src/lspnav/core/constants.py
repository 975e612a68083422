"""
Constants used throughout the lspnav application.
"""

# Special delimiter constants for command calls and results
COMMAND_START = "▶"
COMMAND_END = "■"
STDIN_SEPARATOR = "｜"
ERROR_PREFIX = "❌"
SUCCESS_PREFIX = "✅"

# Seconds to wait after synchronizing a document before querying the server
DEFAULT_SETTLE_DELAY = 1.0

# Report line emitted when no import line in a changed file can be matched
IMPORTS_UPDATED_PLACEHOLDER = "    Import statements updated"
