"""Pydantic model for skillhub runtime settings."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from skillhub.config.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_HOME,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_SEARCH_API_URL,
    INSTALL_DIR_NAME,
    LOG_DIR_NAME,
    MANIFEST_FILE_NAME,
)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseModel):
    """Runtime settings resolved from the environment.

    Fields:
        home: Base directory for the manifest, installed skills and logs
        install_dir: Override for the install directory (default: <home>/skills)
        search_api_url: Search API endpoint
        github_token: Token sent to the GitHub contents API
        http_timeout: Per-request timeout in seconds
        cache_ttl: Marketplace cache TTL in seconds
        cache_enabled: Disable to always hit the network
        log_level: Root log level
        export_targets: Default export targets for ``export`` and ``install --export``

    Example:
        >>> settings = Settings(home=Path("/tmp/skillhub"))
        >>> settings.manifest_path
        PosixPath('/tmp/skillhub/marketplace.json')
    """

    home: Path = DEFAULT_HOME
    install_dir: Path | None = None
    search_api_url: str = DEFAULT_SEARCH_API_URL
    github_token: str | None = None
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)
    cache_ttl: float = Field(default=DEFAULT_CACHE_TTL, ge=0)
    cache_enabled: bool = True
    log_level: str = "INFO"
    export_targets: list[str] = Field(default_factory=lambda: ["all"])

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level '{v}'. Valid levels: {sorted(VALID_LOG_LEVELS)}")
        return level

    @property
    def manifest_path(self) -> Path:
        return self.home / MANIFEST_FILE_NAME

    @property
    def resolved_install_dir(self) -> Path:
        return self.install_dir or self.home / INSTALL_DIR_NAME

    @property
    def log_dir(self) -> Path:
        return self.home / LOG_DIR_NAME
