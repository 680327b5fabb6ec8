"""CLI entrypoint: print the base commit for the current CircleCI build.

Usage:
    basesha <build-url> <branch> [main-branch] [dev-branch]
            [error-on-missing] [allow-on-hold] [workflow-name]

The last line written to stdout on success is `Commit: <sha>`.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional, TextIO

from pydantic import ValidationError

from .config.settings import Settings, describe_settings_error
from .core.exceptions import (
    ConfigurationError,
    NoSuccessfulWorkflowError,
    PipelineFetchError,
)
from .core.interfaces import PipelineSource, Repository
from .core.resolver import BaseCommitResolver, Resolution, ResolutionMethod, ResolverConfig
from .utils.logging import configure_logging, get_logger
from .vcs.repository import GitRepository

logger = get_logger(__name__)

HARD_ERROR_MESSAGE = """
    Unable to find a successful workflow run on/at {target}'
    NOTE: You have set 'error-on-no-successful-workflow' on the step so this is a hard error.

    Is it possible that you have no runs currently on/at {target}'?
    - If yes, then you should run the workflow without this flag first.
    - If no, then you might have changed your git history and those commits no longer exist.
"""

FALLBACK_MESSAGE = """
WARNING: Unable to find a successful workflow run on/at {target}'.
We are therefore defaulting to use HEAD~1 on/at {target}'.

NOTE: You can instead make this a hard error by setting 'error-on-no-successful-workflow' on the step in your workflow.

"""

FOUND_MESSAGE = """
Found the last successful workflow run on/at {target}'.

"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="basesha",
        description="Find the base commit to diff against for CI change detection",
    )
    parser.add_argument("build_url", help="URL of the current CircleCI build")
    parser.add_argument("branch", help="Branch being built")
    parser.add_argument("main_branch", nargs="?", help="Main branch name (MAIN_BRANCH_NAME wins)")
    parser.add_argument("dev_branch", nargs="?", help="Dev branch name (DEV_BRANCH_NAME wins)")
    parser.add_argument(
        "error_on_missing",
        nargs="?",
        default="0",
        help="'1' to fail when no successful workflow run is found",
    )
    parser.add_argument(
        "allow_on_hold",
        nargs="?",
        default="0",
        help="'1' to accept workflows that are on hold",
    )
    parser.add_argument("workflow_name", nargs="?", help="Only consider workflows with this name")
    return parser


def build_config(args: argparse.Namespace, settings: Settings) -> ResolverConfig:
    main_branch = settings.main_branch_name or args.main_branch
    dev_branch = settings.dev_branch_name or args.dev_branch
    if not main_branch or not dev_branch:
        raise ConfigurationError(
            "Main and dev branch names are required (as arguments or via "
            "MAIN_BRANCH_NAME / DEV_BRANCH_NAME)",
            context={"main_branch": main_branch, "dev_branch": dev_branch},
        )
    return ResolverConfig(
        build_url=args.build_url,
        branch=args.branch,
        main_branch=main_branch,
        dev_branch=dev_branch,
        error_on_missing=args.error_on_missing == "1",
        allow_on_hold=args.allow_on_hold == "1",
        workflow_name=args.workflow_name or None,
        release_tag=settings.circle_tag,
        api_token=settings.circle_api_token,
        request_timeout=settings.timeout,
    )


def report(resolution: Resolution, out: TextIO) -> None:
    if resolution.method is ResolutionMethod.PIPELINE:
        out.write(FOUND_MESSAGE.format(target=resolution.target))
    elif resolution.method is ResolutionMethod.FALLBACK:
        out.write(FALLBACK_MESSAGE.format(target=resolution.target))
    out.write(f"Commit: {resolution.sha}\n")


def run(
    config: ResolverConfig,
    repository: Repository,
    source: Optional[PipelineSource] = None,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Resolve and print the base commit. Returns the process exit code."""
    out = out or sys.stdout
    err = err or sys.stderr

    resolver = BaseCommitResolver(config, repository, source)
    try:
        resolution = resolver.resolve()
    except PipelineFetchError as e:
        logger.debug("Pipeline fetch failed", exc_info=True)
        err.write(f"{e}\n")
        return 1
    except NoSuccessfulWorkflowError:
        out.write(HARD_ERROR_MESSAGE.format(target=resolver.route().target))
        return 1

    report(resolution, out)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as e:
        parser.error(describe_settings_error(e))

    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        config = build_config(args, settings)
    except ConfigurationError as e:
        parser.error(e.message)

    with GitRepository() as repository:
        return run(config, repository)


if __name__ == "__main__":
    sys.exit(main())
