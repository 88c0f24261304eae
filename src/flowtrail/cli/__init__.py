"""Flowtrail CLI for sending recorded documents and checking configuration."""

from flowtrail.cli.main import main

__all__ = ["main"]
