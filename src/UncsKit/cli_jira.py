from __future__ import annotations

import argparse
import logging
from datetime import datetime

from rich.prompt import Confirm

from .config import load_settings
from .console import add_row, console, create_table, log, print_json, spinner, summary_box
from .jira import UNASSIGN, CreateIssueParams, JiraClient, UpdateIssueParams
from .utils import configure_logging, read_body
from .version import __version__

logger = logging.getLogger(__name__)

SUMMARY_WIDTH = 50


def create_client() -> JiraClient:
    return JiraClient(load_settings())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jira", description="Jira CLI for fetching and creating issues")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    get = sub.add_parser("get", help="Get a Jira issue by key (e.g., ENG-123)")
    get.add_argument("issue_key")
    _add_json(get)
    get.set_defaults(handler=cmd_get)

    search = sub.add_parser("search", help="Search Jira issues using JQL")
    search.add_argument("jql")
    search.add_argument("-l", "--limit", type=int, default=25, help="Maximum results")
    _add_json(search)
    search.set_defaults(handler=cmd_search)

    projects = sub.add_parser("projects", help="List available Jira projects")
    _add_json(projects)
    projects.set_defaults(handler=cmd_projects)

    create = sub.add_parser("create", help="Create a new Jira issue")
    create.add_argument("-p", "--project", required=True, help="Project key (e.g., ENG)")
    create.add_argument("-t", "--type", required=True, help="Issue type (e.g., Bug, Task, Story)")
    create.add_argument("-s", "--summary", required=True, help="Issue summary/title")
    _add_description(create)
    create.add_argument("-P", "--priority", help="Priority (e.g., High, Medium, Low)")
    create.add_argument("-l", "--labels", help="Comma-separated labels")
    create.add_argument("-a", "--assignee", help="Assignee email or name")
    create.add_argument("--parent", help="Parent issue key (epic for stories, story for subtasks)")
    create.add_argument("--points", type=int, help="Story points")
    _add_json(create)
    create.set_defaults(handler=cmd_create)

    user = sub.add_parser("user", help="Lookup a user by email or name")
    user.add_argument("query")
    _add_json(user)
    user.set_defaults(handler=cmd_user)

    update = sub.add_parser("update", help="Update an existing Jira issue")
    update.add_argument("issue_key")
    update.add_argument("-s", "--summary", help="New summary/title")
    _add_description(update)
    update.add_argument("-P", "--priority", help="New priority (e.g., High, Medium, Low)")
    update.add_argument("-l", "--labels", help="New labels (comma-separated, replaces existing)")
    assignee = update.add_mutually_exclusive_group()
    assignee.add_argument("-a", "--assignee", help="New assignee email or name")
    assignee.add_argument("--unassign", action="store_true", help="Remove assignee")
    update.add_argument("--points", type=int, help="Story points")
    _add_json(update)
    update.set_defaults(handler=cmd_update)

    comment = sub.add_parser("comment", help="Add a comment to a Jira issue")
    comment.add_argument("issue_key")
    comment.add_argument("-m", "--message", help="Comment text (markdown)")
    comment.add_argument("-f", "--file", help="Read comment from a markdown file")
    comment.add_argument("--stdin", action="store_true", help="Read comment from stdin")
    _add_json(comment)
    comment.set_defaults(handler=cmd_comment)

    delete = sub.add_parser("delete", help="Delete a Jira issue")
    delete.add_argument("issue_key")
    delete.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    _add_json(delete)
    delete.set_defaults(handler=cmd_delete)

    return parser


def _add_json(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    # Also accepted after the subcommand; SUPPRESS keeps a top-level --verbose.
    parser.add_argument("--verbose", action="store_true", default=argparse.SUPPRESS, help="Enable debug logging")


def _add_description(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-d", "--description", help="Description markdown file path")
    parser.add_argument("--description-text", help="Description as inline text")
    parser.add_argument("--stdin", action="store_true", help="Read description from stdin")


def _header(args: argparse.Namespace, title: str) -> None:
    if not args.json:
        log.title(f"Jira - {title}")
        log.subtitle()


def _split_labels(labels: str | None) -> list[str] | None:
    if labels is None:
        return None
    return [label.strip() for label in labels.split(",")]


def _format_timestamp(value: str | None) -> str:
    if not value:
        return "-"
    try:
        return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%f%z").astimezone().strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return value


def _lookup_assignee(client: JiraClient, query: str, quiet: bool) -> str | None:
    s = spinner(f"Looking up user: {query}...", enabled=not quiet)
    user = client.find_user(query)
    if user is None:
        s.warn(f"User not found: {query}")
        return None
    s.succeed(f"Found user: {user.display_name}")
    return user.account_id


def cmd_get(args: argparse.Namespace, client: JiraClient) -> int:
    s = spinner(f"Fetching {args.issue_key}...", enabled=not args.json)
    issue = client.get_issue(args.issue_key)
    if issue is None:
        s.fail(f"Issue {args.issue_key} not found")
        return 1
    s.succeed(f"Found {issue.key}")

    if args.json:
        print_json(issue.to_dict())
        return 0

    log.blank()
    log.highlight(f"{issue.key}: {issue.summary}")
    log.dim(issue.url)
    log.blank()

    table = create_table(["Field", "Value"])
    add_row(table, "Status", issue.status)
    add_row(table, "Type", issue.issue_type)
    add_row(table, "Priority", issue.priority or "-")
    add_row(table, "Assignee", issue.assignee or "Unassigned")
    add_row(table, "Reporter", issue.reporter or "-")
    add_row(table, "Labels", ", ".join(issue.labels or []) or "-")
    add_row(table, "Created", _format_timestamp(issue.created))
    add_row(table, "Updated", _format_timestamp(issue.updated))
    console.print(table)

    if issue.description:
        log.blank()
        log.highlight("Description:")
        log.dim("─" * 50)
        log.raw(issue.description)
    return 0


def cmd_search(args: argparse.Namespace, client: JiraClient) -> int:
    if not args.json:
        log.dim(f"JQL: {args.jql}")
    s = spinner("Searching...", enabled=not args.json)
    result = client.search_issues(args.jql, max_results=args.limit)
    s.succeed(f"Found {result.total} issue(s)")

    if args.json:
        print_json(result.to_dict())
        return 0

    if not result.issues:
        log.warning("No issues found")
        return 0

    log.blank()
    table = create_table(["Key", "Type", "Status", "Summary", "Assignee"])
    for issue in result.issues:
        summary = issue.summary
        if len(summary) > SUMMARY_WIDTH:
            summary = summary[: SUMMARY_WIDTH - 3] + "..."
        add_row(table, issue.key, issue.issue_type, issue.status, summary, issue.assignee or "-")
    console.print(table)
    return 0


def cmd_projects(args: argparse.Namespace, client: JiraClient) -> int:
    s = spinner("Fetching projects...", enabled=not args.json)
    projects = client.get_projects()
    s.succeed(f"Found {len(projects)} project(s)")

    if args.json:
        print_json([project.to_dict() for project in projects])
        return 0

    if not projects:
        log.warning("No projects found")
        return 0

    log.blank()
    table = create_table(["Key", "Name", "Issue Types"])
    for project in projects:
        add_row(table, project.key, project.name, ", ".join(t.name for t in project.issue_types))
    console.print(table)
    return 0


def cmd_create(args: argparse.Namespace, client: JiraClient) -> int:
    description = read_body(args.description, args.description_text, args.stdin)

    assignee_id = None
    if args.assignee:
        assignee_id = _lookup_assignee(client, args.assignee, args.json)

    s = spinner("Creating issue...", enabled=not args.json)
    issue = client.create_issue(
        CreateIssueParams(
            project_key=args.project,
            issue_type=args.type,
            summary=args.summary,
            description=description,
            priority=args.priority,
            labels=_split_labels(args.labels),
            assignee_account_id=assignee_id,
            parent_key=args.parent,
            story_points=args.points,
        )
    )
    if issue is None:
        s.fail("Failed to create issue")
        return 1
    s.succeed(f"Created {issue.key}")

    if args.json:
        print_json(issue.to_dict())
        return 0

    summary_box(
        "Issue Created",
        {
            "Key": issue.key,
            "Type": issue.issue_type,
            "Status": issue.status,
            "Priority": issue.priority or "-",
        },
    )
    log.blank()
    log.success(f"URL: {issue.url}")
    return 0


def cmd_user(args: argparse.Namespace, client: JiraClient) -> int:
    s = spinner(f'Searching for "{args.query}"...', enabled=not args.json)
    user = client.find_user(args.query)
    if user is None:
        s.fail("User not found")
        return 1
    s.succeed("User found")

    if args.json:
        print_json(user.to_dict())
        return 0

    log.blank()
    log.highlight(user.display_name)
    log.item(f"Account ID: {user.account_id}")
    if user.email:
        log.item(f"Email: {user.email}")
    return 0


def cmd_update(args: argparse.Namespace, client: JiraClient) -> int:
    description = read_body(args.description, args.description_text, args.stdin)

    assignee_id = None
    if args.unassign:
        assignee_id = UNASSIGN
    elif args.assignee:
        assignee_id = _lookup_assignee(client, args.assignee, args.json)

    s = spinner(f"Updating {args.issue_key}...", enabled=not args.json)
    ok = client.update_issue(
        args.issue_key,
        UpdateIssueParams(
            summary=args.summary,
            description=description,
            priority=args.priority,
            labels=_split_labels(args.labels),
            assignee_account_id=assignee_id,
            story_points=args.points,
        ),
    )
    if not ok:
        s.fail("Failed to update issue")
        return 1
    s.succeed(f"Updated {args.issue_key}")

    issue = client.get_issue(args.issue_key)
    if args.json:
        print_json(issue.to_dict() if issue else None)
        return 0
    if issue is not None:
        log.blank()
        log.success(f"URL: {issue.url}")
    return 0


def cmd_comment(args: argparse.Namespace, client: JiraClient) -> int:
    body = read_body(args.file, args.message, args.stdin)
    if not body:
        log.error("No comment provided. Use -m, -f, or --stdin")
        return 1

    s = spinner(f"Adding comment to {args.issue_key}...", enabled=not args.json)
    if not client.add_comment(args.issue_key, body):
        s.fail("Failed to add comment")
        return 1
    s.succeed(f"Comment added to {args.issue_key}")

    if args.json:
        print_json({"commented": True, "key": args.issue_key}, indent=None)
        return 0

    log.blank()
    log.success(f"URL: {client.issue_url(args.issue_key)}")
    return 0


def cmd_delete(args: argparse.Namespace, client: JiraClient) -> int:
    issue = client.get_issue(args.issue_key)
    if issue is None:
        log.error(f"Issue {args.issue_key} not found")
        return 1

    if not args.json:
        log.warning(f"About to delete: {issue.key} - {issue.summary}")
        if not args.yes and not Confirm.ask("Delete this issue?", console=console, default=False):
            log.dim("Aborted")
            return 1

    s = spinner(f"Deleting {args.issue_key}...", enabled=not args.json)
    if not client.delete_issue(args.issue_key):
        s.fail("Failed to delete issue")
        return 1
    s.succeed(f"Deleted {args.issue_key}")

    if args.json:
        print_json({"deleted": True, "key": args.issue_key}, indent=None)
    return 0


_TITLES = {
    "get": "Get Issue",
    "search": "Search",
    "projects": "Projects",
    "create": "Create Issue",
    "user": "User Lookup",
    "update": "Update Issue",
    "comment": "Add Comment",
    "delete": "Delete Issue",
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    logger.debug("Command: %s", args.command)
    _header(args, _TITLES[args.command])
    try:
        with create_client() as client:
            return args.handler(args, client)
    except FileNotFoundError as exc:
        log.error(f"File not found: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
