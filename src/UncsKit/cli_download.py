from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

from .config import load_settings
from .confluence import ConfluenceClient, PageSummary
from .console import item_list, log, print_json, spinner, summary_box
from .frontmatter import generate_frontmatter, sanitize_filename
from .renderer_markdown import html_to_markdown
from .utils import configure_logging
from .version import __version__

logger = logging.getLogger(__name__)


@dataclass
class DownloadStats:
    downloaded: List[Path] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"downloaded": [str(p) for p in self.downloaded], "failed": self.failed}


def create_client() -> ConfluenceClient:
    return ConfluenceClient(load_settings())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="download-confluence", description="Download Confluence pages as markdown files"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    page = sub.add_parser("page", help="Download a single page by ID")
    page.add_argument("page_id")
    _add_common(page)

    space = sub.add_parser("space", help="Download the pages of a space")
    space.add_argument("space_key")
    space.add_argument("-l", "--limit", type=int, default=25, help="Maximum pages")
    _add_common(space)

    search = sub.add_parser("search", help="Download the pages matching a text search")
    search.add_argument("query")
    search.add_argument("-l", "--limit", type=int, default=25, help="Maximum pages")
    _add_common(search)

    return parser


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-o", "--output", required=True, help="Output directory")
    parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    parser.add_argument("--verbose", action="store_true", default=argparse.SUPPRESS, help="Enable debug logging")


def page_document(title: str, page_id: str, source: str, body_html: str, downloaded: datetime) -> str:
    """Markdown file content for one page: the frontmatter block followed by the body."""
    header = generate_frontmatter(
        {
            "title": title,
            "page_id": page_id,
            "source": source,
            "downloaded": downloaded.isoformat(),
        }
    )
    return header + html_to_markdown(body_html)


def download_page(client: ConfluenceClient, page_id: str, output: Path, stats: DownloadStats) -> Path | None:
    page = client.get_page(page_id)
    if page is None or not page.body:
        logger.debug("Skipping page %s: not found or empty", page_id)
        stats.failed.append(page_id)
        return None

    source = f"{client.settings.base_url}/wiki/pages/{page.id}"
    content = page_document(page.title, page.id, source, page.body, datetime.now(timezone.utc))
    path = output / f"{sanitize_filename(page.title) or page.id}.md"
    try:
        output.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        logger.error("Could not write %s: %s", path, exc)
        stats.failed.append(page_id)
        return None
    stats.downloaded.append(path)
    return path


def download_pages(
    client: ConfluenceClient, pages: Iterable[PageSummary], output: Path, quiet: bool
) -> DownloadStats:
    stats = DownloadStats()
    pages = list(pages)
    total = len(pages)
    for index, summary in enumerate(pages, start=1):
        if not quiet:
            log.step(index, total, summary.title)
        path = download_page(client, summary.id, output, stats)
        if path is not None and not quiet:
            log.arrow(str(path))
    return stats


def cmd_page(args: argparse.Namespace, client: ConfluenceClient, output: Path) -> DownloadStats:
    stats = DownloadStats()
    s = spinner(f"Downloading page {args.page_id}...", enabled=not args.json)
    path = download_page(client, args.page_id, output, stats)
    if path is None:
        s.fail(f"Failed to download page {args.page_id}")
    else:
        s.succeed(f"Saved {path}")
    return stats


def cmd_space(args: argparse.Namespace, client: ConfluenceClient, output: Path) -> DownloadStats | None:
    s = spinner(f"Fetching space {args.space_key}...", enabled=not args.json)
    space = client.get_space(args.space_key)
    if space is None:
        s.fail(f"Space not found: {args.space_key}")
        return None
    s.succeed(f"Found space: {space.name} ({space.key})")

    s = spinner("Fetching pages...", enabled=not args.json)
    pages = client.get_space_pages(args.space_key, limit=args.limit)
    if not pages:
        s.fail("No pages found in space")
        return None
    s.succeed(f"Found {len(pages)} page(s)")
    if not args.json:
        item_list("Pages to download", [page.title for page in pages])
    return download_pages(client, pages, output, args.json)


def cmd_search(args: argparse.Namespace, client: ConfluenceClient, output: Path) -> DownloadStats | None:
    s = spinner(f'Searching for "{args.query}"...', enabled=not args.json)
    pages = client.search_pages(args.query, limit=args.limit)
    if not pages:
        s.fail(f"No pages found matching: {args.query}")
        return None
    s.succeed(f"Found {len(pages)} page(s)")
    if not args.json:
        item_list("Pages to download", [f"{page.title} ({page.id})" for page in pages])
    return download_pages(client, pages, output, args.json)


_COMMANDS = {"page": cmd_page, "space": cmd_space, "search": cmd_search}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    output = Path(args.output).expanduser()

    if not args.json:
        log.title("Confluence - Download")
        log.dim(f"Output: {output}")
        log.subtitle()

    with create_client() as client:
        stats = _COMMANDS[args.command](args, client, output)
    if stats is None:
        if args.json:
            print_json(DownloadStats().to_dict())
        return 1

    if args.json:
        print_json(stats.to_dict())
    else:
        summary_box("Download Complete", {"Downloaded": len(stats.downloaded), "Failed": len(stats.failed)})
        item_list("Failed page IDs", stats.failed)
    return 1 if stats.failed and not stats.downloaded else 0


if __name__ == "__main__":
    raise SystemExit(main())
