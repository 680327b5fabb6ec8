"""CircleCI API client for reading pipeline history.

This client wraps the CircleCI REST API v2 to list a branch's pipelines
and the workflows that ran in each of them.

Usage:
    location = ProjectLocation.from_build_url(os.environ["CIRCLE_BUILD_URL"])
    client = CircleCIClient(location, token="your-token")
    for page in client.iter_pipeline_pages("main"):
        ...
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional

import requests
from pydantic import ValidationError

from basesha.core.exceptions import PipelineFetchError
from basesha.core.models import PipelinePage, ProjectLocation, WorkflowPage, WorkflowRun

logger = logging.getLogger(__name__)

# Request timeout in seconds
REQUEST_TIMEOUT = 30.0

TOKEN_HINT = "Check if you set the correct user CIRCLE_API_TOKEN."
NO_TOKEN_HINT = "If this is private repo you will need to set CIRCLE_API_TOKEN"


class CircleCIClient:
    """Client for the CircleCI pipeline and workflow endpoints."""

    def __init__(
        self,
        location: ProjectLocation,
        token: Optional[str] = None,
        timeout: Optional[float] = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the CircleCI client.

        Args:
            location: Host and project slug of the build
            token: Optional CircleCI API token; requests are unauthenticated without it
            timeout: Per-request timeout in seconds, None to wait forever
            session: Optional preconfigured requests session
        """
        self.location = location
        self.token = token
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if token:
            self._session.headers.update({"Circle-Token": token})

    def _fetch_error(self, cause: Any) -> PipelineFetchError:
        hint = TOKEN_HINT if self.token else NO_TOKEN_HINT
        return PipelineFetchError(
            f"Error: Pipeline fetching failed.\n{hint}\n\n{cause}",
            context={"host": self.location.host, "project": self.location.project},
        )

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make a GET request to the CircleCI API.

        Args:
            endpoint: API endpoint (e.g., "/pipeline/{pipeline_id}/workflow")
            params: Query parameters

        Returns:
            JSON response data

        Raises:
            PipelineFetchError: If the request fails
        """
        url = f"{self.location.api_base}{endpoint}"
        logger.debug(
            "GET %s params=%s", url, params, extra={"endpoint": endpoint, "params": params}
        )

        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as e:
            raise self._fetch_error(f"Request to {url} timed out: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise self._fetch_error(f"Could not connect to {self.location.host}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise self._fetch_error(e) from e
        except ValueError as e:
            raise self._fetch_error(f"Invalid JSON from {url}: {e}") from e

    def get_pipeline_page(self, branch: str, page_token: Optional[str] = None) -> PipelinePage:
        """Get one page of pipelines for a branch.

        Args:
            branch: Branch name
            page_token: Cursor returned by the previous page

        Returns:
            PipelinePage with items and the next page token
        """
        params: Dict[str, Any] = {"branch": branch}
        if page_token:
            params["page-token"] = page_token

        data = self._get(f"/project/{self.location.project}/pipeline", params=params)
        try:
            page = PipelinePage.model_validate(data)
        except ValidationError as e:
            raise self._fetch_error(e) from e

        logger.debug(
            "Fetched %d pipelines for branch %s (next_page_token=%s)",
            len(page.items),
            branch,
            page.next_page_token,
        )
        return page

    def iter_pipeline_pages(self, branch: str) -> Iterator[PipelinePage]:
        """Lazily yield pipeline pages for a branch, newest first.

        A page is only requested when the previous one has been consumed.
        """
        page_token: Optional[str] = None

        while True:
            page = self.get_pipeline_page(branch, page_token)
            yield page

            # Check for more pages
            page_token = page.next_page_token
            if not page_token:
                return

    def get_workflows(self, pipeline_id: str) -> List[WorkflowRun]:
        """Get the workflow runs of a pipeline.

        Args:
            pipeline_id: The pipeline ID

        Returns:
            List of WorkflowRun objects
        """
        data = self._get(f"/pipeline/{pipeline_id}/workflow")
        try:
            page = WorkflowPage.model_validate(data)
        except ValidationError as e:
            raise self._fetch_error(e) from e

        logger.debug("Fetched %d workflows for pipeline %s", len(page.items), pipeline_id)
        return page.items
