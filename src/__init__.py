"""
lspnav - semantic code navigation and refactoring operations for automated callers.

This package resolves fuzzy source locations into language-server coordinates,
queries a running language server for hover information, and moves source
files while repairing the imports that point at them.
"""

import logging
import logging.handlers
import os
import sys
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# .env in the working directory may set any LSPNAV_* variable
load_dotenv()

if "pytest" in sys.modules:
    LSPNAV_HOME = "/tmp/.lspnav"
else:
    LSPNAV_HOME = os.environ.get("LSPNAV_HOME", os.path.expanduser("~/.lspnav"))

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_MAX_BYTES = 10 * 1024 * 1024


def _rotating_handler(path: str, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=3)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def setup_logging() -> None:
    """
    Configure logging for every lspnav module.

    - {LSPNAV_HOME}/logs/stdout.log receives everything at LOG_LEVEL
    - {LSPNAV_HOME}/logs/stderr.log receives warnings and errors
    - stderr receives everything at LOG_LEVEL when LOG_TO_CONSOLE=1

    Command results go to stdout, so console logging is off by default.
    """
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    log_dir = os.path.join(LSPNAV_HOME, "logs")
    os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    root_logger.addHandler(_rotating_handler(os.path.join(log_dir, "stdout.log"), level, formatter))
    root_logger.addHandler(_rotating_handler(os.path.join(log_dir, "stderr.log"), logging.WARNING, formatter))

    if os.environ.get("LOG_TO_CONSOLE") == "1":
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        console.setLevel(level)
        root_logger.addHandler(console)

    # rope logs every resource it touches at DEBUG
    logging.getLogger("rope").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger.debug(f"Logging to {log_dir} at level {logging.getLevelName(level)}")


setup_logging()
