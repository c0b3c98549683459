from __future__ import annotations

import argparse
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TypeVar

from rich.markup import escape

from . import git_ops
from .console import console, create_table, log, print_json, spinner, summary_box
from .utils import configure_logging
from .version import __version__

logger = logging.getLogger(__name__)

SKIP_DIRS = {".git", "node_modules", ".cache", "dist", "build", ".next"}
CURRENT = "."

T = TypeVar("T")
R = TypeVar("R")


class PullResult(str, Enum):
    UPDATED = "updated"
    UP_TO_DATE = "up-to-date"
    FAILED = "failed"
    SKIPPED = "skipped"
    NOT_MAIN = "not-main"
    FETCHED = "fetched"


SORT_ORDER = {
    PullResult.UPDATED: 0,
    PullResult.FETCHED: 1,
    PullResult.FAILED: 2,
    PullResult.UP_TO_DATE: 3,
    PullResult.NOT_MAIN: 4,
    PullResult.SKIPPED: 5,
}


@dataclass
class RepoStatus:
    name: str
    is_repo: bool
    branch: Optional[str] = None
    result: PullResult = PullResult.SKIPPED
    error: Optional[str] = None

    def display_name(self, root_name: str) -> str:
        return root_name if self.name == CURRENT else self.name

    def to_dict(self, root_name: str) -> dict:
        return {
            "name": self.display_name(root_name),
            "isRepo": self.is_repo,
            "branch": self.branch,
            "result": self.result.value,
            "error": self.error,
        }


@dataclass
class PullSummary:
    updated: int
    up_to_date: int
    fetched: int
    failed: int
    elapsed: float

    def to_dict(self) -> dict:
        return {
            "updated": self.updated,
            "upToDate": self.up_to_date,
            "fetched": self.fetched,
            "failed": self.failed,
            "elapsed": f"{self.elapsed:.1f}s",
        }


def fan_out(fn: Callable[[T], R], items: Sequence[T], on_done: Callable[[R], None] | None = None) -> List[R]:
    """Run ``fn`` over ``items`` concurrently, one thread per item.

    Results keep the order of ``items``; ``on_done`` is called from the
    calling thread as each one finishes.
    """
    if not items:
        return []
    results: List[Optional[R]] = [None] * len(items)
    with ThreadPoolExecutor(max_workers=len(items)) as pool:
        futures = {pool.submit(fn, item): index for index, item in enumerate(items)}
        for future in as_completed(futures):
            result = future.result()
            results[futures[future]] = result
            if on_done is not None:
                on_done(result)
    return results  # type: ignore[return-value]


def get_repo_dirs(root: Path) -> List[str]:
    return sorted(
        entry.name
        for entry in root.iterdir()
        if entry.is_dir() and entry.name not in SKIP_DIRS and not entry.name.startswith(".")
    )


def scan_repo(root: Path, name: str) -> RepoStatus:
    path = root / name
    status = RepoStatus(name=name, is_repo=git_ops.is_git_repo(path))
    if not status.is_repo:
        return status
    status.branch = git_ops.current_branch(path)
    if not status.branch:
        status.error = "Could not determine branch"
        status.result = PullResult.FAILED
    return status


def scan(root: Path) -> List[RepoStatus]:
    if git_ops.is_git_repo(root):
        return [scan_repo(root, CURRENT)]
    return fan_out(lambda name: scan_repo(root, name), get_repo_dirs(root))


def partition(scanned: Sequence[RepoStatus], pull_all: bool = False):
    """Split scan results into (to_pull, not_on_main, skipped)."""
    to_pull: List[RepoStatus] = []
    not_on_main: List[RepoStatus] = []
    skipped: List[RepoStatus] = []
    for status in scanned:
        if not status.is_repo:
            skipped.append(status)
        elif git_ops.is_main_branch(status.branch) or pull_all:
            to_pull.append(status)
        else:
            status.result = PullResult.NOT_MAIN
            not_on_main.append(status)
    return to_pull, not_on_main, skipped


def pull_repo(root: Path, status: RepoStatus) -> RepoStatus:
    outcome = git_ops.pull(root / status.name)
    if outcome.success:
        return replace(status, result=PullResult.UPDATED if outcome.updated else PullResult.UP_TO_DATE)
    return replace(status, result=PullResult.FAILED, error=outcome.output)


def fetch_main_for_repo(root: Path, status: RepoStatus) -> RepoStatus:
    outcome = git_ops.fetch_main(root / status.name)
    if outcome.success:
        return replace(status, result=PullResult.FETCHED)
    return replace(status, result=PullResult.FAILED, error=outcome.output)


def summarize(pulled: Sequence[RepoStatus], fetched: Sequence[RepoStatus], elapsed: float) -> PullSummary:
    def count(items: Sequence[RepoStatus], result: PullResult) -> int:
        return sum(1 for item in items if item.result == result)

    return PullSummary(
        updated=count(pulled, PullResult.UPDATED),
        up_to_date=count(pulled, PullResult.UP_TO_DATE),
        fetched=count(fetched, PullResult.FETCHED),
        failed=count(pulled, PullResult.FAILED) + count(fetched, PullResult.FAILED),
        elapsed=elapsed,
    )


def format_result(result: PullResult) -> str:
    return {
        PullResult.UPDATED: "[bold green]⬇ UPDATED[/]",
        PullResult.UP_TO_DATE: "[dim]✓ up to date[/]",
        PullResult.FAILED: "[bold red]✗ FAILED[/]",
        PullResult.SKIPPED: "[yellow]○ skipped[/]",
        PullResult.NOT_MAIN: "[blue]◇ not on main[/]",
        PullResult.FETCHED: "[cyan]⬇ fetched main[/]",
    }[result]


def format_branch(branch: str | None, result: PullResult) -> str:
    if not branch:
        return "[dim]-[/]"
    if result in (PullResult.NOT_MAIN, PullResult.FETCHED):
        return f"[cyan]{escape(branch)}[/]"
    color = "green" if git_ops.is_main_branch(branch) else "yellow"
    return f"[{color}]{escape(branch)}[/]"


def _plural(count: int, singular: str, plural: str | None = None) -> str:
    return singular if count == 1 else (plural or singular + "s")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pull-all",
        description="Pull latest changes for all repos in a directory",
    )
    parser.add_argument("directory", nargs="?", help="Directory containing repos (default: current directory)")
    parser.add_argument("-d", "--dry-run", action="store_true", help="Show what would be pulled without pulling")
    parser.add_argument("-a", "--all", dest="pull_all", action="store_true", help="Pull all repos regardless of branch")
    parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    root = Path(args.directory or Path.cwd()).expanduser().resolve()
    root_name = root.name
    quiet = args.json
    started = time.monotonic()

    root_is_repo = git_ops.is_git_repo(root)
    if not quiet:
        dry = " (Dry Run)" if args.dry_run else ""
        if root_is_repo:
            log.title(f"Pull Repo{dry}")
            log.dim(f"Repo: {root}")
        else:
            log.title(f"Pull All Repos{dry}")
            log.dim(f"Directory: {root}")
        log.subtitle()

    # Phase 1: scan
    scan_spinner = spinner("Scanning repos...", enabled=not quiet)
    scanned = scan(root)
    if root_is_repo:
        scan_spinner.succeed("Current directory is a git repo")
    else:
        repo_count = sum(1 for s in scanned if s.is_repo)
        scan_spinner.succeed(f"Found {repo_count} {_plural(repo_count, 'repo')}")

    to_pull, not_on_main, _ = partition(scanned, pull_all=args.pull_all)
    logger.debug("%d to pull, %d on feature branches", len(to_pull), len(not_on_main))

    # Phase 2: pull repos on main
    pulled: List[RepoStatus] = []
    if args.dry_run:
        pulled = [replace(s, result=PullResult.SKIPPED) for s in to_pull]
        if not quiet:
            log.blank()
            log.info(f"Would pull {len(to_pull)} {_plural(len(to_pull), 'repo')}:")
            for s in to_pull:
                log.item(f"{s.display_name(root_name)} ({s.branch})")
    elif to_pull:
        pulled = _pull_with_progress(root, to_pull, quiet)

    # Phase 3: fetch main for repos on feature branches
    fetched: List[RepoStatus] = []
    if not_on_main and not args.dry_run:
        fetched = _fetch_with_progress(root, not_on_main, quiet)
    elif not_on_main:
        fetched = list(not_on_main)
        if not quiet:
            log.info(
                f"Would fetch main for {len(not_on_main)} feature "
                f"{_plural(len(not_on_main), 'branch', 'branches')}:"
            )
            for s in not_on_main:
                log.item(f"{s.display_name(root_name)} ({s.branch})")

    all_results = pulled + fetched
    summary = summarize(pulled, fetched, time.monotonic() - started)

    if quiet:
        print_json({"results": [r.to_dict(root_name) for r in all_results], "summary": summary.to_dict()})
        return 0

    log.blank()
    table = create_table(["Repo", "Branch", "Status"])
    for r in sorted(all_results, key=lambda r: SORT_ORDER[r.result]):
        name = f"{root_name} (current)" if r.name == CURRENT else r.name
        table.add_row(escape(name), format_branch(r.branch, r.result), format_result(r.result))
    console.print(table)

    summary_box(
        f"Completed in {summary.elapsed:.1f}s",
        {
            "Updated": summary.updated,
            "Up to date": summary.up_to_date,
            "Fetched main": summary.fetched,
            "Failed": summary.failed,
        },
    )

    if summary.failed:
        log.blank()
        log.error("Errors:")
        for r in all_results:
            if r.result == PullResult.FAILED:
                log.item(f"{r.display_name(root_name)}: {r.error}")
    return 0


def _pull_with_progress(root: Path, to_pull: List[RepoStatus], quiet: bool) -> List[RepoStatus]:
    total = len(to_pull)
    label = _plural(total, "repo")
    pull_spinner = spinner(f"Pulling {total} {label}...", enabled=not quiet)
    progress = {"completed": 0, "updated": 0}

    def on_done(status: RepoStatus) -> None:
        progress["completed"] += 1
        if status.result == PullResult.UPDATED:
            progress["updated"] += 1
        updated = f" [green]({progress['updated']} updated)[/]" if progress["updated"] else ""
        pull_spinner.update(f"Pulling {label}... [cyan]{progress['completed']}/{total}[/]{updated}")

    results = fan_out(lambda status: pull_repo(root, status), to_pull, on_done)

    updated_count = sum(1 for r in results if r.result == PullResult.UPDATED)
    failed_count = sum(1 for r in results if r.result == PullResult.FAILED)
    if failed_count:
        pull_spinner.warn(f"Completed with {failed_count} {_plural(failed_count, 'error')}")
    elif updated_count:
        pull_spinner.succeed(f"Pulled {updated_count} {_plural(updated_count, 'update')}")
    else:
        pull_spinner.succeed("Repo up to date" if total == 1 else "All repos up to date")
    return results


def _fetch_with_progress(root: Path, not_on_main: List[RepoStatus], quiet: bool) -> List[RepoStatus]:
    total = len(not_on_main)
    label = _plural(total, "branch", "branches")
    fetch_spinner = spinner(f"Fetching main for {total} feature {label}...", enabled=not quiet)
    progress = {"completed": 0}

    def on_done(status: RepoStatus) -> None:
        progress["completed"] += 1
        fetch_spinner.update(f"Fetching main... [cyan]{progress['completed']}/{total}[/]")

    results = fan_out(lambda status: fetch_main_for_repo(root, status), not_on_main, on_done)

    failed_count = sum(1 for r in results if r.result == PullResult.FAILED)
    if failed_count:
        fetch_spinner.warn(f"Fetched with {failed_count} {_plural(failed_count, 'error')}")
    else:
        fetch_spinner.succeed(f"Fetched main for {total} {label}")
    return results


if __name__ == "__main__":
    raise SystemExit(main())
