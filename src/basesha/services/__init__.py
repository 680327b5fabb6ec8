"""External service clients."""

from .circleci_client import CircleCIClient

__all__ = ["CircleCIClient"]
