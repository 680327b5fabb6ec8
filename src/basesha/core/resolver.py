"""Base-commit resolution.

`BaseCommitResolver.resolve()` picks a route once and hands back the commit
downstream tooling should diff against:

- release tag     -> commit of the previous version tag
- feature branch  -> merge-base with the dev branch
- main/dev branch -> last commit with a successful CircleCI pipeline, else HEAD~1

Nothing here reads the environment or writes to the console; the CLI owns both.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from basesha.core.exceptions import NoSuccessfulWorkflowError
from basesha.core.interfaces import PipelineSource, Repository
from basesha.core.models import ProjectLocation
from basesha.core.routes import (
    FeatureBranchRoute,
    ProtectedBranchRoute,
    Route,
    TagRoute,
    select_route,
)
from basesha.core.search import PipelineSearch
from basesha.utils.logging import get_logger

logger = get_logger(__name__)

FALLBACK_REVISION = "HEAD~1"


@dataclass(frozen=True)
class ResolverConfig:
    """Everything a resolution depends on, environment overrides already applied."""

    build_url: str
    branch: str
    main_branch: str
    dev_branch: str
    error_on_missing: bool = False
    allow_on_hold: bool = False
    workflow_name: Optional[str] = None
    release_tag: Optional[str] = None
    api_token: Optional[str] = None
    request_timeout: Optional[float] = 30.0


class ResolutionMethod(str, Enum):
    """How the base commit was found."""
    TAG = "tag"
    MERGE_BASE = "merge_base"
    PIPELINE = "pipeline"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Resolution:
    sha: str
    route: Route
    method: ResolutionMethod

    @property
    def target(self) -> str:
        return self.route.target


class BaseCommitResolver:
    """Resolves the base commit for one build."""

    def __init__(
        self,
        config: ResolverConfig,
        repository: Repository,
        source: Optional[PipelineSource] = None,
    ):
        self.config = config
        self.repository = repository
        # Fails fast on a malformed build URL, whatever the route.
        self.location = ProjectLocation.from_build_url(config.build_url)
        if source is None:
            from basesha.services.circleci_client import CircleCIClient

            source = CircleCIClient(
                self.location,
                token=config.api_token,
                timeout=config.request_timeout,
            )
        self.source = source

    def route(self) -> Route:
        return select_route(
            self.config.branch,
            self.config.main_branch,
            self.config.dev_branch,
            release_tag=self.config.release_tag,
        )

    def resolve(self) -> Resolution:
        """Resolve the base commit.

        Raises:
            NoPreviousTagError: Tag route, no preceding version tag
            GitCommandError: A git query failed
            PipelineFetchError: The CircleCI API could not be read
            NoSuccessfulWorkflowError: Nothing eligible and error_on_missing is set
        """
        route = self.route()
        logger.info("Resolving base commit via %s", type(route).__name__)

        if isinstance(route, TagRoute):
            return self._resolve_tag(route)
        if isinstance(route, FeatureBranchRoute):
            return self._resolve_feature_branch(route)
        return self._resolve_protected_branch(route)

    def _resolve_tag(self, route: TagRoute) -> Resolution:
        previous = self.repository.previous_version_tag(route.tag)
        sha = self.repository.tag_commit(previous)
        return Resolution(sha=sha, route=route, method=ResolutionMethod.TAG)

    def _resolve_feature_branch(self, route: FeatureBranchRoute) -> Resolution:
        # All non-main, non-dev branches target the dev branch for merge
        sha = self.repository.merge_base(f"origin/{route.branch}", f"origin/{route.dev_branch}")
        return Resolution(sha=sha, route=route, method=ResolutionMethod.MERGE_BASE)

    def _resolve_protected_branch(self, route: ProtectedBranchRoute) -> Resolution:
        search = PipelineSearch(
            self.source,
            self.repository,
            allow_on_hold=self.config.allow_on_hold,
        )
        sha = search.find_successful_commit(route.branch, self.config.workflow_name)
        if sha:
            return Resolution(sha=sha, route=route, method=ResolutionMethod.PIPELINE)

        if self.config.error_on_missing:
            raise NoSuccessfulWorkflowError(
                f"Unable to find a successful workflow run on/at {route.target}",
                context={"branch": route.branch, "workflow": self.config.workflow_name},
            )

        logger.warning(
            "No successful workflow run on %s, falling back to %s",
            route.target,
            FALLBACK_REVISION,
        )
        sha = self.repository.rev_parse(FALLBACK_REVISION)
        return Resolution(sha=sha, route=route, method=ResolutionMethod.FALLBACK)
