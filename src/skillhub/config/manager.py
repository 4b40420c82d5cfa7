"""Settings loader combining .env files and environment variables."""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from .schema import Settings

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded."""

    pass


def load_settings(env_file: Path | None = None) -> Settings:
    """Load settings from the environment.

    A ``.env`` file is read first (without overriding variables that are
    already set). Recognized variables:

    - SKILLHUB_HOME, SKILLHUB_INSTALL_DIR
    - SKILLHUB_SEARCH_API, GITHUB_TOKEN
    - SKILLHUB_HTTP_TIMEOUT, SKILLHUB_CACHE_TTL, SKILLHUB_NO_CACHE
    - SKILLHUB_LOG_LEVEL (falls back to LOG_LEVEL)
    - SKILLHUB_EXPORT_TARGETS (comma separated)

    Args:
        env_file: Optional explicit .env path (default: search from cwd)

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If a variable has an invalid value

    Example:
        >>> settings = load_settings()
        >>> settings.manifest_path
        PosixPath('/home/me/.skillhub/marketplace.json')
    """
    load_dotenv(dotenv_path=env_file)

    data: dict[str, Any] = {}
    if home := os.getenv("SKILLHUB_HOME"):
        data["home"] = Path(home).expanduser()
    if install_dir := os.getenv("SKILLHUB_INSTALL_DIR"):
        data["install_dir"] = Path(install_dir).expanduser()
    if search_api := os.getenv("SKILLHUB_SEARCH_API"):
        data["search_api_url"] = search_api
    if token := os.getenv("GITHUB_TOKEN"):
        data["github_token"] = token
    if timeout := os.getenv("SKILLHUB_HTTP_TIMEOUT"):
        data["http_timeout"] = timeout
    if ttl := os.getenv("SKILLHUB_CACHE_TTL"):
        data["cache_ttl"] = ttl
    if no_cache := os.getenv("SKILLHUB_NO_CACHE"):
        data["cache_enabled"] = no_cache.strip().lower() not in _TRUE_VALUES
    if log_level := os.getenv("SKILLHUB_LOG_LEVEL") or os.getenv("LOG_LEVEL"):
        data["log_level"] = log_level
    if targets := os.getenv("SKILLHUB_EXPORT_TARGETS"):
        data["export_targets"] = [t.strip() for t in targets.split(",") if t.strip()]

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid skillhub configuration:\n{e}") from e
