"""Command-line interface for skillhub."""

from skillhub.cli.app import app

__all__ = ["app"]
