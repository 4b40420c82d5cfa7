"""Shared test fixtures for all tests.

This file imports and re-exports fixtures from the fixtures/ module
so they are discovered by pytest for every test package.
"""

from tests.fixtures.config import clean_env, cli_env, settings  # noqa: F401
from tests.fixtures.marketplace import (  # noqa: F401
    cache,
    fake_clock,
    fake_fetcher,
    installer,
    manifest_store,
    stub_resolver,
    team_source,
)
from tests.fixtures.skills import skill_dir, skill_document, skills_root  # noqa: F401
