"""CircleCI API models.

Only the fields the resolver reads are declared; everything else in the API
payload is ignored.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from basesha.core.exceptions import BuildUrlError

BUILD_URL_PATTERN = re.compile(r"https?://([^/]+)/(.*)/\d+")


class WorkflowStatus(str, Enum):
    """Workflow statuses that carry meaning for base-commit resolution."""
    SUCCESS = "success"
    ON_HOLD = "on_hold"


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Vcs(_ApiModel):
    revision: Optional[str] = None


class Pipeline(_ApiModel):
    """A single pipeline from the project pipeline listing."""
    id: str
    errors: List[Any] = Field(default_factory=list)
    # API-triggered and errored pipelines can come back without a vcs block.
    vcs: Optional[Vcs] = None

    @property
    def revision(self) -> Optional[str]:
        return self.vcs.revision if self.vcs else None


class PipelinePage(_ApiModel):
    """One page of pipelines plus the cursor for the next one."""
    items: List[Pipeline] = Field(default_factory=list)
    next_page_token: Optional[str] = None


class WorkflowRun(_ApiModel):
    """A workflow run belonging to a pipeline."""
    name: str
    status: str

    def is_accepted(self, allow_on_hold: bool) -> bool:
        if self.status == WorkflowStatus.SUCCESS.value:
            return True
        return allow_on_hold and self.status == WorkflowStatus.ON_HOLD.value


class WorkflowPage(_ApiModel):
    items: List[WorkflowRun] = Field(default_factory=list)
    next_page_token: Optional[str] = None


class ProjectLocation(BaseModel):
    """CircleCI host and project slug taken from a build URL.

    Examples:
        https://circleci.com/gh/acme/app/1234 -> host="circleci.com", project="gh/acme/app"
    """
    host: str
    project: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_build_url(cls, build_url: str) -> "ProjectLocation":
        match = BUILD_URL_PATTERN.search(build_url)
        if not match:
            raise BuildUrlError(
                f"Could not extract host and project from build URL: {build_url}. "
                "Expected format: https://<host>/<project>/<build number>",
                context={"build_url": build_url},
            )
        host, project = match.groups()
        return cls(host=host, project=project)

    @property
    def api_base(self) -> str:
        return f"https://{self.host}/api/v2"
