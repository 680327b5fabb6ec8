"""Shared test fixtures for resolver tests.

The resolver only talks to CircleCI and git through Protocols; these fakes
record every call so tests can assert what was (not) requested.
"""

from typing import Dict, Iterator, List, Optional, Set

import pytest

from basesha.core.exceptions import GitCommandError, PipelineFetchError
from basesha.core.models import Pipeline, PipelinePage, WorkflowRun
from basesha.core.resolver import ResolverConfig
from basesha.vcs.repository import find_previous_tag

BUILD_URL = "https://circleci.com/gh/acme/app/1234"


def make_pipeline(pipeline_id: str, revision: str, errors: Optional[list] = None) -> Pipeline:
    return Pipeline.model_validate(
        {
            "id": pipeline_id,
            "errors": errors or [],
            "vcs": {"revision": revision, "branch": "main"},
            "state": "created",
        }
    )


def make_page(*pipelines: Pipeline, next_page_token: Optional[str] = None) -> PipelinePage:
    return PipelinePage(items=list(pipelines), next_page_token=next_page_token)


def workflow_run(name: str, status: str) -> WorkflowRun:
    return WorkflowRun(name=name, status=status)


class FakePipelineSource:
    """In-memory PipelineSource."""

    def __init__(
        self,
        pages: Optional[List[PipelinePage]] = None,
        workflows: Optional[Dict[str, List[WorkflowRun]]] = None,
        error: Optional[PipelineFetchError] = None,
    ):
        self.pages = pages or []
        self.workflows = workflows or {}
        self.error = error
        self.pages_fetched = 0
        self.workflow_requests: List[str] = []
        self.branches: List[str] = []

    def iter_pipeline_pages(self, branch: str) -> Iterator[PipelinePage]:
        self.branches.append(branch)
        if self.error is not None:
            raise self.error
        for page in self.pages:
            self.pages_fetched += 1
            yield page

    def get_workflows(self, pipeline_id: str) -> List[WorkflowRun]:
        self.workflow_requests.append(pipeline_id)
        return self.workflows.get(pipeline_id, [])

    @property
    def called(self) -> bool:
        return bool(self.branches or self.workflow_requests)


class FakeRepository:
    """In-memory Repository."""

    def __init__(
        self,
        commits: Optional[Set[str]] = None,
        tags: Optional[Dict[str, str]] = None,
        merge_bases: Optional[Dict[tuple, str]] = None,
        revisions: Optional[Dict[str, str]] = None,
    ):
        self.commits = commits or set()
        self.tags = tags or {}
        self.merge_bases = merge_bases or {}
        self.revisions = revisions or {}
        self.existence_checks: List[str] = []

    def previous_version_tag(self, tag: str, pattern: str = "v*") -> str:
        return find_previous_tag([t for t in self.tags if t.startswith(pattern.rstrip("*"))], tag)

    def tag_commit(self, tag: str) -> str:
        if tag not in self.tags:
            raise GitCommandError(f"unknown tag {tag}")
        return self.tags[tag]

    def merge_base(self, first: str, second: str) -> str:
        if (first, second) not in self.merge_bases:
            raise GitCommandError("git merge-base failed", context={"args": [first, second]})
        return self.merge_bases[(first, second)]

    def commit_exists(self, sha: str) -> bool:
        self.existence_checks.append(sha)
        return sha in self.commits

    def rev_parse(self, rev: str) -> str:
        if rev not in self.revisions:
            raise GitCommandError("git rev-parse failed", context={"args": [rev]})
        return self.revisions[rev]


@pytest.fixture
def make_config():
    """Factory fixture for ResolverConfig with main/dev defaults."""

    def _make(**overrides) -> ResolverConfig:
        values = {
            "build_url": BUILD_URL,
            "branch": "main",
            "main_branch": "main",
            "dev_branch": "dev",
        }
        values.update(overrides)
        return ResolverConfig(**values)

    return _make
