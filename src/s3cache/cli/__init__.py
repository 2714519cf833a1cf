"""CLI for s3cache."""

from s3cache.cli.main import app, main


__all__ = ["app", "main"]
