from __future__ import annotations

import argparse
import logging

from .config import load_settings
from .confluence import ConfluenceClient
from .console import add_row, console, create_table, log, print_json, spinner, summary_box
from .renderer_markdown import html_to_markdown
from .renderer_storage import render_storage
from .utils import configure_logging, read_body
from .version import __version__

logger = logging.getLogger(__name__)

EMPTY_BODY = "<p></p>"


def create_client() -> ConfluenceClient:
    return ConfluenceClient(load_settings())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="confluence", description="Confluence CLI for managing pages")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    get = sub.add_parser("get", help="Get a page by ID")
    get.add_argument("page_id")
    get.add_argument("--html", action="store_true", help="Show the raw storage format instead of markdown")
    _add_json(get)
    get.set_defaults(handler=cmd_get)

    search = sub.add_parser("search", help="Search pages by text")
    search.add_argument("query")
    search.add_argument("-l", "--limit", type=int, default=25, help="Maximum results")
    _add_json(search)
    search.set_defaults(handler=cmd_search)

    space = sub.add_parser("space", help="List pages in a space")
    space.add_argument("space_key")
    space.add_argument("-l", "--limit", type=int, default=25, help="Maximum results")
    _add_json(space)
    space.set_defaults(handler=cmd_space)

    create = sub.add_parser("create", help="Create a new page")
    create.add_argument("-s", "--space", required=True, help="Space key")
    create.add_argument("-t", "--title", help="Page title (defaults to the markdown frontmatter title)")
    _add_body(create)
    create.add_argument("-p", "--parent", help="Parent page ID")
    _add_json(create)
    create.set_defaults(handler=cmd_create)

    update = sub.add_parser("update", help="Update an existing page")
    update.add_argument("page_id")
    update.add_argument("-t", "--title", help="New title")
    _add_body(update)
    _add_json(update)
    update.set_defaults(handler=cmd_update)

    delete = sub.add_parser("delete", help="Delete a page")
    delete.add_argument("page_id")
    _add_json(delete)
    delete.set_defaults(handler=cmd_delete)

    return parser


def _add_json(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    # Also accepted after the subcommand; SUPPRESS keeps a top-level --verbose.
    parser.add_argument("--verbose", action="store_true", default=argparse.SUPPRESS, help="Enable debug logging")


def _add_body(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-b", "--body", help="Body file path (storage format HTML, or markdown with --markdown)")
    parser.add_argument("--body-text", help="Body as inline text")
    parser.add_argument("--stdin", action="store_true", help="Read body from stdin")
    parser.add_argument("--markdown", action="store_true", help="Treat the body as markdown")


def _read_page_body(args: argparse.Namespace) -> tuple[str | None, str | None]:
    """Return (storage body, frontmatter title) from the body options."""
    body = read_body(args.body, args.body_text, args.stdin)
    if body is None or not args.markdown:
        return body, None
    doc = render_storage(body)
    return doc.body, doc.title


def _print_pages(pages) -> None:
    table = create_table(["ID", "Title", "Space"])
    for page in pages:
        add_row(table, page.id, page.title, page.space_key or "-")
    console.print(table)


def cmd_get(args: argparse.Namespace, client: ConfluenceClient) -> int:
    s = spinner(f"Fetching page {args.page_id}...", enabled=not args.json)
    page = client.get_page(args.page_id)
    if page is None:
        s.fail(f"Page {args.page_id} not found")
        return 1
    s.succeed(f"Found: {page.title}")

    if args.json:
        print_json(page.to_dict())
        return 0

    log.blank()
    log.highlight(page.title)
    log.dim(client.page_url(page))
    log.item(f"Space: {page.space_key or '-'}")
    log.item(f"Version: {page.version or '-'}")
    log.blank()
    log.dim("─" * 50)
    log.raw(page.body if args.html else html_to_markdown(page.body))
    return 0


def cmd_search(args: argparse.Namespace, client: ConfluenceClient) -> int:
    s = spinner(f'Searching for "{args.query}"...', enabled=not args.json)
    pages = client.search_pages(args.query, limit=args.limit)
    s.succeed(f"Found {len(pages)} page(s)")

    if args.json:
        print_json([page.to_dict() for page in pages])
        return 0

    if not pages:
        log.warning("No pages found")
        return 0
    log.blank()
    _print_pages(pages)
    return 0


def cmd_space(args: argparse.Namespace, client: ConfluenceClient) -> int:
    s = spinner(f"Fetching space {args.space_key}...", enabled=not args.json)
    space = client.get_space(args.space_key)
    if space is None:
        s.fail(f"Space {args.space_key} not found")
        return 1
    pages = client.get_space_pages(args.space_key, limit=args.limit)
    s.succeed(f"{space.name}: {len(pages)} page(s)")

    if args.json:
        print_json({"space": space.to_dict(), "pages": [page.to_dict() for page in pages]})
        return 0

    if not pages:
        log.warning("No pages found")
        return 0
    log.blank()
    _print_pages(pages)
    return 0


def cmd_create(args: argparse.Namespace, client: ConfluenceClient) -> int:
    body, frontmatter_title = _read_page_body(args)
    title = args.title or frontmatter_title
    if not title:
        log.error("No title provided. Use -t or a frontmatter title with --markdown")
        return 1

    s = spinner("Creating page...", enabled=not args.json)
    page = client.create_page(args.space, title, body or EMPTY_BODY, parent_id=args.parent)
    if page is None:
        s.fail("Failed to create page")
        return 1
    s.succeed(f"Created page {page.id}")

    if args.json:
        print_json(page.to_dict())
        return 0

    summary_box("Page Created", {"ID": page.id, "Title": page.title, "Space": page.space_key or "-"})
    log.blank()
    log.success(f"URL: {client.page_url(page)}")
    return 0


def cmd_update(args: argparse.Namespace, client: ConfluenceClient) -> int:
    body, _ = _read_page_body(args)
    if not args.title and not body:
        log.error("Nothing to update. Provide --title or --body")
        return 1

    s = spinner(f"Updating page {args.page_id}...", enabled=not args.json)
    page = client.update_page(args.page_id, title=args.title, body=body)
    if page is None:
        s.fail("Failed to update page")
        return 1
    s.succeed(f"Updated to version {page.version}")

    if args.json:
        print_json(page.to_dict())
        return 0

    log.blank()
    log.success(f"URL: {client.page_url(page)}")
    return 0


def cmd_delete(args: argparse.Namespace, client: ConfluenceClient) -> int:
    s = spinner(f"Deleting page {args.page_id}...", enabled=not args.json)
    if not client.delete_page(args.page_id):
        s.fail("Failed to delete page")
        return 1
    s.succeed(f"Deleted page {args.page_id}")

    if args.json:
        print_json({"deleted": True, "id": args.page_id}, indent=None)
    return 0


_TITLES = {
    "get": "Get Page",
    "search": "Search",
    "space": "Space Pages",
    "create": "Create Page",
    "update": "Update Page",
    "delete": "Delete Page",
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    logger.debug("Command: %s", args.command)
    if not args.json:
        log.title(f"Confluence - {_TITLES[args.command]}")
        log.subtitle()
    try:
        with create_client() as client:
            return args.handler(args, client)
    except FileNotFoundError as exc:
        log.error(f"File not found: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
