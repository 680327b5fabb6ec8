"""Tests for local git queries.

Version ordering is tested on plain tag lists; GitRepository runs against a
throwaway repository and is skipped when git is not installed.
"""

import pytest

from basesha.core.exceptions import GitCommandError, NoPreviousTagError
from basesha.vcs.repository import (
    GitRepository,
    find_previous_tag,
    parse_tag_version,
    sort_version_tags,
)


# -----------------------------------------------------------------------------
# Version ordering
# -----------------------------------------------------------------------------


class TestVersionOrdering:
    def test_parse_tag_version(self):
        assert str(parse_tag_version("v1.2.3")) == "1.2.3"
        assert str(parse_tag_version("v2")) == "2.0.0"
        assert parse_tag_version("vnext") is None
        assert parse_tag_version("v1.2.3.4") is None

    def test_numeric_not_lexicographic(self):
        tags = ["v1.10.0", "v1.2.0", "v1.9.1", "v1.0.0"]
        assert sort_version_tags(tags) == ["v1.0.0", "v1.2.0", "v1.9.1", "v1.10.0"]

    def test_prerelease_before_release(self):
        tags = ["v2.0.0", "v2.0.0-rc.1", "v1.5.0"]
        assert sort_version_tags(tags) == ["v1.5.0", "v2.0.0-rc.1", "v2.0.0"]

    def test_non_version_tags_sort_last(self):
        assert sort_version_tags(["v1.0.0", "vlatest", "v0.9.0"]) == ["v0.9.0", "v1.0.0", "vlatest"]

    def test_zero_padded_calendar_tags(self):
        tags = ["v2023.10.01", "v2023.09.15", "v2024.01.02"]
        assert sort_version_tags(tags) == ["v2023.09.15", "v2023.10.01", "v2024.01.02"]
        assert find_previous_tag(["v2023.09.15", "v2023.10.01"], "v2023.10.01") == "v2023.09.15"

    def test_four_part_tags(self):
        tags = ["v1.2.4", "v1.2.3.4", "v1.2.3", "v1.2.3.10"]
        assert sort_version_tags(tags) == ["v1.2.3", "v1.2.3.4", "v1.2.3.10", "v1.2.4"]
        assert find_previous_tag(tags, "v1.2.4") == "v1.2.3.10"

    def test_loose_tag_prerelease_before_release(self):
        tags = ["v2023.10.01", "v2023.10.01-rc1", "v2023.09.15"]
        assert find_previous_tag(tags, "v2023.10.01") == "v2023.10.01-rc1"

    def test_find_previous_tag(self):
        tags = ["v1.10.0", "v1.9.0", "v1.2.0"]
        assert find_previous_tag(tags, "v1.10.0") == "v1.9.0"
        assert find_previous_tag(tags, "v1.9.0") == "v1.2.0"

    def test_previous_tag_is_not_a_substring_match(self):
        tags = ["v1.1.0", "v1.1.0-rc.1", "v1.0.0", "v11.0.0"]
        assert find_previous_tag(tags, "v1.1.0") == "v1.1.0-rc.1"
        assert find_previous_tag(tags, "v11.0.0") == "v1.1.0"

    def test_oldest_tag_has_no_previous(self):
        with pytest.raises(NoPreviousTagError):
            find_previous_tag(["v1.0.0", "v1.1.0"], "v1.0.0")

    def test_unknown_tag(self):
        with pytest.raises(NoPreviousTagError):
            find_previous_tag(["v1.0.0"], "v3.0.0")


# -----------------------------------------------------------------------------
# GitRepository
# -----------------------------------------------------------------------------


@pytest.fixture
def git_repo(tmp_path):
    """A repository with two tagged commits on a line and a side branch."""
    git = pytest.importorskip("git")

    repo = git.Repo.init(tmp_path)
    with repo.config_writer() as config:
        config.set_value("user", "name", "basesha tests")
        config.set_value("user", "email", "tests@example.com")

    def commit(message: str) -> str:
        (tmp_path / "file.txt").write_text(message)
        repo.index.add(["file.txt"])
        return repo.index.commit(message).hexsha

    first = commit("first")
    repo.create_tag("v1.0.0", ref=first)
    second = commit("second")
    repo.create_tag("v1.1.0", ref=second, message="release 1.1.0")
    repo.create_tag("nightly", ref=second)
    repo.create_head("dev", second)
    third = commit("third")
    repo.create_tag("v1.10.0", ref=third)

    repo.head.reference = repo.create_head("feature", second)
    repo.head.reset(index=True, working_tree=True)
    feature = commit("feature work")

    shas = {"first": first, "second": second, "third": third, "feature": feature}
    yield tmp_path, shas
    repo.close()


class TestGitRepository:
    def test_list_version_tags(self, git_repo):
        path, _ = git_repo
        with GitRepository(str(path)) as repo:
            assert repo.list_version_tags() == ["v1.0.0", "v1.1.0", "v1.10.0"]

    def test_previous_tag_commit(self, git_repo):
        path, shas = git_repo
        with GitRepository(str(path)) as repo:
            previous = repo.previous_version_tag("v1.10.0")
            assert previous == "v1.1.0"
            # annotated tags resolve to the tagged commit
            assert repo.tag_commit(previous) == shas["second"]

    def test_merge_base(self, git_repo):
        path, shas = git_repo
        with GitRepository(str(path)) as repo:
            assert repo.merge_base("feature", "v1.10.0") == shas["second"]

    def test_merge_base_unknown_ref(self, git_repo):
        path, _ = git_repo
        with GitRepository(str(path)) as repo:
            with pytest.raises(GitCommandError) as exc_info:
                repo.merge_base("origin/feature", "origin/dev")
        assert exc_info.value.context["args"] == ["origin/feature", "origin/dev"]

    def test_commit_exists(self, git_repo):
        path, shas = git_repo
        with GitRepository(str(path)) as repo:
            assert repo.commit_exists(shas["first"]) is True
            assert repo.commit_exists("0" * 40) is False
            assert repo.commit_exists("") is False

    def test_rev_parse_parent_of_head(self, git_repo):
        path, shas = git_repo
        with GitRepository(str(path)) as repo:
            assert repo.rev_parse("HEAD~1") == shas["second"]

    def test_not_a_repository(self, tmp_path):
        pytest.importorskip("git")
        with pytest.raises(GitCommandError):
            GitRepository(str(tmp_path / "missing"))
