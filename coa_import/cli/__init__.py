"""Command line interface (``python -m coa_import.cli``)."""

from .app import main

__all__ = ["main"]
