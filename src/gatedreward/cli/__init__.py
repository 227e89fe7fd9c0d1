"""Command-line interface for the gated reward ledger."""

from .main import app, main

__all__ = ["app", "main"]
