from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

logger = logging.getLogger(__name__)

MAIN_BRANCHES = ("main", "master")
UP_TO_DATE_MARKER = "Already up to date"


@dataclass
class PullOutcome:
    success: bool
    updated: bool
    output: str


@dataclass
class FetchOutcome:
    success: bool
    output: str


def is_git_repo(path: str | Path) -> bool:
    return (Path(path) / ".git").is_dir()


def is_main_branch(branch: str | None) -> bool:
    return branch in MAIN_BRANCHES


def current_branch(path: str | Path) -> str | None:
    try:
        branch = Repo(path).git.rev_parse("--abbrev-ref", "HEAD").strip()
    except (GitCommandError, InvalidGitRepositoryError, NoSuchPathError) as exc:
        logger.debug("Could not read branch of %s: %s", path, exc)
        return None
    return branch or None


def pull(path: str | Path) -> PullOutcome:
    """Run ``git pull`` on the checked-out branch."""
    try:
        output = Repo(path).git.pull().strip()
    except (GitCommandError, InvalidGitRepositoryError, NoSuchPathError) as exc:
        return PullOutcome(success=False, updated=False, output=_error_text(exc))
    return PullOutcome(success=True, updated=UP_TO_DATE_MARKER not in output, output=output)


def fetch_main(path: str | Path) -> FetchOutcome:
    """Fast-forward the local main (or master) branch from origin without checking it out."""
    try:
        repo = Repo(path)
    except (InvalidGitRepositoryError, NoSuchPathError) as exc:
        return FetchOutcome(success=False, output=_error_text(exc))

    error: Exception | None = None
    for branch in MAIN_BRANCHES:
        try:
            output = repo.git.fetch("origin", f"{branch}:{branch}")
        except GitCommandError as exc:
            logger.debug("fetch origin %s:%s failed in %s: %s", branch, branch, path, exc)
            error = exc
            continue
        return FetchOutcome(success=True, output=output.strip())
    return FetchOutcome(success=False, output=_error_text(error))


def _error_text(exc: Exception | None) -> str:
    if isinstance(exc, GitCommandError):
        return (exc.stderr or str(exc)).strip()
    return str(exc)
