"""skillhub - Skill marketplace sync and install pipeline for AI coding agents."""

from importlib.metadata import PackageNotFoundError, version

# Read version from package metadata (pyproject.toml)
try:
    __version__ = version("skillhub")
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "0.0.0.dev"

from skillhub.errors import SkillError

__all__ = ["SkillError", "__version__"]
