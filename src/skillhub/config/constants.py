"""Configuration constants for skillhub.

This module provides a single source of truth for all default configuration values.
Separated from schema.py and manager.py to avoid circular imports.
"""

from pathlib import Path

# Default paths
MANIFEST_FILE_NAME = "marketplace.json"
INSTALL_DIR_NAME = "skills"
LOG_DIR_NAME = "logs"
DEFAULT_HOME = Path.home() / ".skillhub"
DEFAULT_MANIFEST_PATH = DEFAULT_HOME / MANIFEST_FILE_NAME
DEFAULT_INSTALL_DIR = DEFAULT_HOME / INSTALL_DIR_NAME
PROJECT_SKILLS_DIR = Path(".skillhub") / "skills"
LOCAL_SKILLS_DIR = Path("skills")

# Remote endpoints
GITHUB_API_URL = "https://api.github.com"
GITHUB_RAW_URL = "https://raw.githubusercontent.com"
GITHUB_CLONE_URL = "https://github.com"
DEFAULT_SEARCH_API_URL = "https://skillsmp.com/api/skills"
INDEX_FILE_NAME = "skills-index.json"
USER_AGENT = "skillhub-cli"

# Network and cache behaviour
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_GIT_TIMEOUT = 120
DEFAULT_CACHE_TTL = 300.0
FETCH_BATCH_SIZE = 10
DEFAULT_SEARCH_LIMIT = 50
SEARCH_SORT_OPTIONS = ("recent", "stars")

# Discovery
DEFAULT_MAX_DEPTH = 3

# Validation limits
MAX_NAME_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 1024
MIN_DESCRIPTION_LENGTH = 50
MAX_COMPATIBILITY_LENGTH = 500
MAX_BODY_LINES = 500
MAX_BODY_TOKENS = 5000
RESERVED_WORDS = ("anthropic", "claude", "google", "openai")

# Sources
SEARCH_API_SOURCE_ID = "skillsmp"
DEPRECATED_SOURCE_IDS = ("agentskills-examples",)
