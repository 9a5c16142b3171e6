"""Shared utilities package for the session authenticator"""

from .storage import SessionStore

__all__ = [
    "SessionStore",
]
