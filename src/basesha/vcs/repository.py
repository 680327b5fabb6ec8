"""Local git repository queries.

Everything the resolver needs from the checkout (tags, merge-bases, commit
existence, HEAD~1) goes through GitRepository, which shells out via GitPython.
"""

from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Tuple

import semver

from basesha.core.exceptions import GitCommandError, NoPreviousTagError
from basesha.utils.logging import get_logger

# NOTE: the git module checks for the git executable on import and raises ImportError
if TYPE_CHECKING:
    from git import Repo
else:
    Repo = Any

logger = get_logger(__name__)

_RUN_PATTERN = re.compile(r"\d+|[^\d.]+")


def parse_tag_version(tag: str) -> Optional[semver.Version]:
    """Parse a `v1.2.3` style tag, or return None if it is not a semantic version."""
    candidate = _strip_prefix(tag)
    try:
        return semver.Version.parse(candidate, optional_minor_and_patch=True)
    except ValueError:
        return None


def _strip_prefix(tag: str) -> str:
    return tag[1:] if tag[:1] in {"v", "V"} else tag


def _identifier_key(identifier: str) -> Tuple[int, Any]:
    # numbers sort before words, and numerically among themselves
    return (0, int(identifier)) if identifier.isdecimal() else (1, identifier)


def _prerelease_key(prerelease: Optional[str]) -> Tuple[int, Tuple]:
    # a release sorts after all of its prereleases
    if not prerelease:
        return (1, ())
    return (0, tuple(_identifier_key(part) for part in prerelease.split(".")))


def version_sort_key(tag: str) -> Tuple:
    """Ordering key for any `v*` tag.

    Semantic versions compare by precedence. Other tags (`v2023.10.01`,
    `v1.2.3.4`) are split into numeric and text runs and compared run by run,
    so zero-padded and four-part versions still order numerically.
    """
    version = parse_tag_version(tag)
    if version is not None:
        release = tuple((0, part) for part in (version.major, version.minor, version.patch))
        return (release, _prerelease_key(version.prerelease), tag)

    candidate = _strip_prefix(tag).split("+", 1)[0]
    release, _, prerelease = candidate.partition("-")
    runs = tuple(_identifier_key(run) for run in _RUN_PATTERN.findall(release))
    return (runs, _prerelease_key(prerelease), tag)


def sort_version_tags(tags: Iterable[str]) -> List[str]:
    """Sort tags by version, ascending."""
    return sorted(tags, key=version_sort_key)


def find_previous_tag(tags: Iterable[str], tag: str) -> str:
    """Return the tag immediately preceding `tag` in version order.

    Raises:
        NoPreviousTagError: If `tag` is not a known version tag or is the oldest one
    """
    ordered = sort_version_tags(tags)
    try:
        index = ordered.index(tag)
    except ValueError:
        raise NoPreviousTagError(
            f"Tag {tag} is not among the version tags of this repository",
            context={"tag": tag, "known_tags": len(ordered)},
        )
    if index == 0:
        raise NoPreviousTagError(
            f"No version tag precedes {tag}",
            context={"tag": tag},
        )
    return ordered[index - 1]


def _import_git() -> None:
    try:
        import git  # noqa: F401
    except ImportError as e:
        raise GitCommandError(
            "GitPython could not find a usable git executable", context={"error": str(e)}
        ) from e


def get_repo(path: str) -> Repo:
    _import_git()

    from git import Repo

    # if GIT_CEILING_DIRECTORIES is set then do not look up for repositories in parent dirs
    search_parent_directories = not os.getenv("GIT_CEILING_DIRECTORIES")
    return Repo(path, search_parent_directories=search_parent_directories)


class GitRepository:
    """GitPython-backed implementation of the Repository protocol."""

    def __init__(self, path: str = "."):
        _import_git()

        from git import GitError

        try:
            self._repo = get_repo(path)
        except GitError as e:
            raise GitCommandError(
                f"Not a git repository: {path}", context={"error": str(e)}
            ) from e

    def close(self) -> None:
        self._repo.close()

    def __enter__(self) -> "GitRepository":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _git(self, command: str, *args: str) -> str:
        from git import GitCommandError as GitPythonCommandError

        try:
            output: str = getattr(self._repo.git, command)(*args)
        except GitPythonCommandError as e:
            raise GitCommandError(
                f"git {command.replace('_', '-')} failed",
                context={"args": list(args), "stderr": (e.stderr or "").strip()},
            ) from e
        return output.strip()

    def list_version_tags(self, pattern: str = "v*") -> List[str]:
        """List tags matching `pattern`, sorted by version."""
        output = self._git("tag", "-l", pattern)
        return sort_version_tags(line.strip() for line in output.splitlines() if line.strip())

    def previous_version_tag(self, tag: str, pattern: str = "v*") -> str:
        previous = find_previous_tag(self.list_version_tags(pattern), tag)
        logger.info("Previous version tag of %s is %s", tag, previous)
        return previous

    def tag_commit(self, tag: str) -> str:
        return self._git("rev_list", "-n", "1", tag)

    def merge_base(self, first: str, second: str) -> str:
        return self._git("merge_base", first, second)

    def commit_exists(self, sha: str) -> bool:
        if not sha:
            return False
        try:
            self._git("cat_file", "-e", sha)
        except GitCommandError:
            logger.debug("Commit %s does not exist locally", sha)
            return False
        return True

    def rev_parse(self, rev: str) -> str:
        return self._git("rev_parse", rev)
