"""basesha - find the base commit for CI change detection."""

from typing import TYPE_CHECKING

__all__ = ["Settings", "BaseCommitResolver", "ResolverConfig"]

if TYPE_CHECKING:
    from .config.settings import Settings
    from .core.resolver import BaseCommitResolver, ResolverConfig


def __getattr__(name: str):
    if name == "Settings":
        from .config.settings import Settings

        return Settings
    if name in {"BaseCommitResolver", "ResolverConfig"}:
        from .core import resolver

        return getattr(resolver, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
