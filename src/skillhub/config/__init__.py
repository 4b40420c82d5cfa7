"""Configuration package for skillhub."""

from .manager import ConfigurationError, load_settings
from .schema import Settings

__all__ = [
    "ConfigurationError",
    "Settings",
    "load_settings",
]
