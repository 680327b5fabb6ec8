"""Resolution routes.

A resolution takes exactly one route, chosen once at entry:
- TagRoute: a release tag is being built, diff against the previous version tag
- FeatureBranchRoute: diff against the merge-base with the dev branch
- ProtectedBranchRoute: main/dev, search CircleCI for the last good pipeline
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class TagRoute:
    tag: str

    @property
    def target(self) -> str:
        return self.tag


@dataclass(frozen=True)
class FeatureBranchRoute:
    branch: str
    dev_branch: str

    @property
    def target(self) -> str:
        return f"origin/{self.branch}"


@dataclass(frozen=True)
class ProtectedBranchRoute:
    branch: str

    @property
    def target(self) -> str:
        return f"origin/{self.branch}"


Route = Union[TagRoute, FeatureBranchRoute, ProtectedBranchRoute]


def select_route(
    branch: str,
    main_branch: str,
    dev_branch: str,
    release_tag: Optional[str] = None,
) -> Route:
    """Pick the route for a resolution. A release tag wins over any branch."""
    if release_tag:
        return TagRoute(tag=release_tag)
    if branch not in (main_branch, dev_branch):
        return FeatureBranchRoute(branch=branch, dev_branch=dev_branch)
    return ProtectedBranchRoute(branch=branch)
