"""Search CircleCI pipeline history for the last successful commit.

Pages come from a lazy generator and are consumed by `next()` over a
filtered generator, so the search stops at the first eligible pipeline and
never requests a page it does not need.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from basesha.core.interfaces import PipelineSource, Repository
from basesha.core.models import Pipeline, PipelinePage, WorkflowRun
from basesha.utils.logging import get_logger

logger = get_logger(__name__)


def workflows_accepted(
    runs: Iterable[WorkflowRun],
    workflow_name: Optional[str] = None,
    allow_on_hold: bool = False,
) -> bool:
    """Apply the workflow-acceptance rule to a pipeline's workflow runs.

    Without a name every run must be accepted; with a name at least one run
    of that name must be.
    """
    if not workflow_name:
        return all(run.is_accepted(allow_on_hold) for run in runs)
    return any(
        run.name == workflow_name and run.is_accepted(allow_on_hold) for run in runs
    )


def iter_pipelines(pages: Iterable[PipelinePage]) -> Iterator[Pipeline]:
    for page in pages:
        yield from page.items


class PipelineSearch:
    """Finds the newest eligible pipeline on a branch."""

    def __init__(
        self,
        source: PipelineSource,
        repository: Repository,
        allow_on_hold: bool = False,
    ):
        self.source = source
        self.repository = repository
        self.allow_on_hold = allow_on_hold

    def is_workflow_successful(self, pipeline_id: str, workflow_name: Optional[str] = None) -> bool:
        runs = self.source.get_workflows(pipeline_id)
        return workflows_accepted(runs, workflow_name, self.allow_on_hold)

    def is_eligible(self, pipeline: Pipeline, workflow_name: Optional[str] = None) -> bool:
        # Cheapest checks first; the workflow check costs a request.
        if pipeline.errors:
            logger.debug("Skipping pipeline %s: %d errors", pipeline.id, len(pipeline.errors))
            return False
        if not pipeline.revision:
            logger.debug("Skipping pipeline %s: no vcs revision", pipeline.id)
            return False
        if not self.repository.commit_exists(pipeline.revision):
            logger.debug(
                "Skipping pipeline %s: commit %s not in local history",
                pipeline.id,
                pipeline.revision,
            )
            return False
        if not self.is_workflow_successful(pipeline.id, workflow_name):
            logger.debug("Skipping pipeline %s: workflows not successful", pipeline.id)
            return False
        return True

    def find_successful_pipeline(
        self, branch: str, workflow_name: Optional[str] = None
    ) -> Optional[Pipeline]:
        pipelines = iter_pipelines(self.source.iter_pipeline_pages(branch))
        eligible = (p for p in pipelines if self.is_eligible(p, workflow_name))
        return next(eligible, None)

    def find_successful_commit(
        self, branch: str, workflow_name: Optional[str] = None
    ) -> Optional[str]:
        """Return the revision of the newest eligible pipeline on `branch`, if any."""
        pipeline = self.find_successful_pipeline(branch, workflow_name)
        if pipeline is None:
            logger.info("No successful pipeline found on branch %s", branch)
            return None
        logger.info(
            "Pipeline %s on branch %s is the last successful one (commit %s)",
            pipeline.id,
            branch,
            pipeline.revision,
        )
        return pipeline.revision
