"""Command line interface for streamclient."""

from .main import app, main


__all__ = ["app", "main"]
