"""Command-line interface for exporting, dumping and walking XML trees."""

from .main import main

__all__ = ["main"]
