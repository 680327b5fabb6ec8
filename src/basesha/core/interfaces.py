"""Interfaces (Protocols) for the resolver's collaborators.

The resolver only talks to the CI provider and the local repository through
these Protocols, so tests can pass in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, List, Protocol, runtime_checkable

if TYPE_CHECKING:
    from basesha.core.models import PipelinePage, WorkflowRun


@runtime_checkable
class PipelineSource(Protocol):
    """Interface for reading pipeline history from the CI provider.

    Implementations:
    - CircleCIClient: CircleCI API v2 over HTTP
    """

    def iter_pipeline_pages(self, branch: str) -> Iterator["PipelinePage"]:
        """Yield pipeline pages for a branch, newest first.

        The next page must only be requested when the consumer asks for it.
        """
        ...

    def get_workflows(self, pipeline_id: str) -> List["WorkflowRun"]:
        """Get the workflow runs belonging to a pipeline."""
        ...


@runtime_checkable
class Repository(Protocol):
    """Interface for queries against the local git repository.

    Implementations:
    - GitRepository: GitPython-backed
    """

    def previous_version_tag(self, tag: str, pattern: str = "v*") -> str:
        """Get the version tag immediately preceding `tag`."""
        ...

    def tag_commit(self, tag: str) -> str:
        """Get the commit a tag points at."""
        ...

    def merge_base(self, first: str, second: str) -> str:
        """Get the best common ancestor of two refs."""
        ...

    def commit_exists(self, sha: str) -> bool:
        """Check if a commit object exists locally. Never raises."""
        ...

    def rev_parse(self, rev: str) -> str:
        """Resolve a revision expression (e.g. HEAD~1) to a commit hash."""
        ...
