"""Command-line interface for maskslicer."""

from maskslicer.cli.slice import main

__all__ = ["main"]
