"""Utility functions for CLI module."""

import logging
import os
import platform
import sys
from pathlib import Path

from rich.console import Console

from skillhub.cli.constants import LOG_FILE_NAME
from skillhub.config import Settings

logger = logging.getLogger(__name__)


def get_console() -> Console:
    """Create Rich console with proper encoding for Windows.

    On Windows in non-interactive mode (subprocess, pipe, etc.), the default
    encoding is often CP1252 which cannot render the ✓/✗/⚠ markers. This
    function detects such cases and forces UTF-8 encoding when possible.

    Returns:
        Console: Configured Rich console instance
    """
    if platform.system() == "Windows" and not sys.stdout.isatty():
        import locale

        encoding = locale.getpreferredencoding() or ""
        if "utf" not in encoding.lower():
            os.environ["PYTHONIOENCODING"] = "utf-8"
            return Console(force_terminal=True, legacy_windows=False)
    return Console()


def setup_logging(level: str, log_file: Path) -> Path:
    """Send all log records to a file so console output stays clean.

    Args:
        level: Log level name (DEBUG, INFO, ...)
        log_file: Destination file; parent directories are created

    Returns:
        Path of the log file
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        filename=str(log_file),
        filemode="a",
        force=True,
    )
    logger.debug(f"Logging to {log_file} at {level.upper()}")
    return log_file


def configure_from_settings(settings: Settings, verbose: bool = False) -> Path:
    """Configure logging from settings; ``verbose`` forces DEBUG."""
    level = "DEBUG" if verbose else settings.log_level
    return setup_logging(level, settings.log_dir / LOG_FILE_NAME)
