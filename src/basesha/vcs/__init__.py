"""Local version control."""

from .repository import GitRepository

__all__ = ["GitRepository"]
