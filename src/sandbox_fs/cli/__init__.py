"""Command line interface for Sandbox FS."""

from sandbox_fs.cli.main import cli

__all__ = ["cli"]
