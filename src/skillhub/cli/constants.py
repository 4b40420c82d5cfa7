"""Constants for CLI module."""


class ExitCodes:
    """Standard exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    INTERRUPTED = 130


LOG_FILE_NAME = "skillhub.log"
BODY_PREVIEW_LINES = 10
