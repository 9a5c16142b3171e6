"""CLI package for the Minecraft session authenticator

This package provides a small command-line interface for logging in,
refreshing and clearing the saved Minecraft session.
"""

from cli.main import main

__all__ = [
    "main",
]
