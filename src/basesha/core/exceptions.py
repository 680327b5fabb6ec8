"""Custom exception hierarchy for basesha."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class BaseShaError(Exception):
    """Base exception type for all basesha errors."""

    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"


class ConfigurationError(BaseShaError):
    """Raised when configuration is missing or invalid."""


class BuildUrlError(ConfigurationError):
    """Raised when the build URL does not look like scheme://host/project/<id>."""


# -----------------------------------------------------------------------------
# Local repository
# -----------------------------------------------------------------------------


class GitCommandError(BaseShaError):
    """Raised when a git query against the local repository fails."""


class NoPreviousTagError(GitCommandError):
    """Raised when the release tag has no preceding version tag."""


# -----------------------------------------------------------------------------
# CI provider
# -----------------------------------------------------------------------------


class PipelineFetchError(BaseShaError):
    """Raised when pipeline or workflow data cannot be fetched."""

    def __str__(self) -> str:
        # Shown verbatim to the user on stderr.
        return self.message


class NoSuccessfulWorkflowError(BaseShaError):
    """Raised when no eligible pipeline exists and missing runs are fatal."""
