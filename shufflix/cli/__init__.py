"""Command-line interface."""

from shufflix.cli.main import cli


__all__ = ["cli"]
