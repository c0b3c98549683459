from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

import httpx

from .atlassian import AtlassianClient, AtlassianError
from .config import AtlassianSettings
from .markdown_parser import markdown_to_adf
from .renderer_text import render_text

logger = logging.getLogger(__name__)

API = "/rest/api/3"

ISSUE_FIELDS = [
    "summary",
    "status",
    "issuetype",
    "priority",
    "assignee",
    "reporter",
    "description",
    "created",
    "updated",
    "labels",
]
SEARCH_FIELDS = ["summary", "status", "issuetype", "priority", "assignee", "created", "labels"]

# Passed as assignee_account_id to clear the assignee.
UNASSIGN = ""

Description = Union[str, Mapping[str, Any]]


@dataclass
class IssueInfo:
    id: str
    key: str
    summary: str
    status: str
    issue_type: str
    url: str
    priority: Optional[str] = None
    assignee: Optional[str] = None
    reporter: Optional[str] = None
    description: Optional[str] = None
    created: Optional[str] = None
    updated: Optional[str] = None
    labels: Optional[List[str]] = None
    story_points: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "key": self.key,
            "summary": self.summary,
            "status": self.status,
            "issueType": self.issue_type,
            "priority": self.priority,
            "assignee": self.assignee,
            "reporter": self.reporter,
            "description": self.description,
            "created": self.created,
            "updated": self.updated,
            "labels": self.labels,
            "storyPoints": self.story_points,
            "url": self.url,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class IssueType:
    id: str
    name: str


@dataclass
class ProjectInfo:
    id: str
    key: str
    name: str
    issue_types: List[IssueType] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "key": self.key,
            "name": self.name,
            "issueTypes": [{"id": t.id, "name": t.name} for t in self.issue_types],
        }


@dataclass
class SearchResult:
    total: int
    issues: List[IssueInfo]

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "issues": [issue.to_dict() for issue in self.issues]}


@dataclass
class UserInfo:
    account_id: str
    display_name: str
    email: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = {"accountId": self.account_id, "displayName": self.display_name, "email": self.email}
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class CreateIssueParams:
    project_key: str
    issue_type: str
    summary: str
    # Markdown text, or an already-built ADF document.
    description: Optional[Description] = None
    priority: Optional[str] = None
    labels: Optional[List[str]] = None
    assignee_account_id: Optional[str] = None
    # Epic for stories, story for subtasks.
    parent_key: Optional[str] = None
    story_points: Optional[float] = None


@dataclass
class UpdateIssueParams:
    summary: Optional[str] = None
    description: Optional[Description] = None
    priority: Optional[str] = None
    labels: Optional[List[str]] = None
    # None leaves the assignee alone, UNASSIGN clears it.
    assignee_account_id: Optional[str] = None
    story_points: Optional[float] = None


class JiraClient(AtlassianClient):
    def __init__(self, settings: AtlassianSettings, transport: httpx.BaseTransport | None = None) -> None:
        super().__init__(settings, transport=transport)
        self.story_points_field = settings.story_points_field

    def issue_url(self, key: str) -> str:
        return f"{self.settings.base_url}/browse/{key}"

    def get_issue(self, issue_id_or_key: str) -> IssueInfo | None:
        fields = ",".join(ISSUE_FIELDS + [self.story_points_field])
        try:
            issue = self.get(f"{API}/issue/{issue_id_or_key}", params={"fields": fields})
        except AtlassianError as exc:
            logger.debug("Issue %s not available: %s", issue_id_or_key, exc)
            return None
        return self._issue_info(issue or {}, issue_id_or_key)

    def search_issues(self, jql: str, max_results: int = 50) -> SearchResult:
        try:
            response = self.post(
                f"{API}/search/jql",
                json={"jql": jql, "maxResults": max_results, "fields": SEARCH_FIELDS},
            )
        except AtlassianError as exc:
            logger.error("Search failed: %s", exc)
            if exc.payload:
                logger.error("%s", exc.payload)
            return SearchResult(total=0, issues=[])

        issues = [self._issue_info(issue, "") for issue in (response or {}).get("issues") or []]
        # The enhanced search endpoint does not report a total.
        return SearchResult(total=len(issues), issues=issues)

    def get_projects(self) -> List[ProjectInfo]:
        try:
            response = self.get(f"{API}/project/search", params={"maxResults": 100, "expand": "issueTypes"})
        except AtlassianError as exc:
            logger.debug("Project listing failed: %s", exc)
            return []
        return [
            ProjectInfo(
                id=str(project.get("id") or ""),
                key=project.get("key") or "",
                name=project.get("name") or "",
                issue_types=[
                    IssueType(id=str(it.get("id") or ""), name=it.get("name") or "")
                    for it in project.get("issueTypes") or []
                ],
            )
            for project in (response or {}).get("values") or []
        ]

    def create_issue(self, params: CreateIssueParams) -> IssueInfo | None:
        fields: dict[str, Any] = {
            "project": {"key": params.project_key},
            "issuetype": {"name": params.issue_type},
            "summary": params.summary,
        }
        if params.description:
            fields["description"] = _description_adf(params.description)
        if params.priority:
            fields["priority"] = {"name": params.priority}
        if params.labels:
            fields["labels"] = params.labels
        if params.assignee_account_id:
            fields["assignee"] = {"accountId": params.assignee_account_id}
        if params.parent_key:
            fields["parent"] = {"key": params.parent_key}
        if params.story_points is not None:
            fields[self.story_points_field] = params.story_points

        try:
            response = self.post(f"{API}/issue", json={"fields": fields})
        except AtlassianError as exc:
            logger.error("Failed to create issue: %s", exc)
            return None

        key = (response or {}).get("key")
        if not key:
            return None
        return self.get_issue(key)

    def update_issue(self, issue_id_or_key: str, params: UpdateIssueParams) -> bool:
        fields: dict[str, Any] = {}
        if params.summary:
            fields["summary"] = params.summary
        if params.description:
            fields["description"] = _description_adf(params.description)
        if params.priority:
            fields["priority"] = {"name": params.priority}
        if params.labels is not None:
            fields["labels"] = params.labels
        if params.assignee_account_id is not None:
            fields["assignee"] = (
                {"accountId": params.assignee_account_id} if params.assignee_account_id != UNASSIGN else None
            )
        if params.story_points is not None:
            fields[self.story_points_field] = params.story_points

        try:
            self.put(f"{API}/issue/{issue_id_or_key}", json={"fields": fields})
        except AtlassianError as exc:
            logger.error("Failed to update issue: %s", exc)
            return False
        return True

    def delete_issue(self, issue_id_or_key: str) -> bool:
        try:
            self.delete(f"{API}/issue/{issue_id_or_key}")
        except AtlassianError as exc:
            logger.error("Failed to delete issue: %s", exc)
            return False
        return True

    def find_user(self, query: str) -> UserInfo | None:
        try:
            users = self.get(f"{API}/user/search", params={"query": query, "maxResults": 1})
        except AtlassianError as exc:
            logger.debug("User search failed: %s", exc)
            return None
        if not users:
            return None
        user = users[0]
        return UserInfo(
            account_id=user.get("accountId") or "",
            display_name=user.get("displayName") or "",
            email=user.get("emailAddress"),
        )

    def add_comment(self, issue_id_or_key: str, body: str) -> bool:
        try:
            self.post(f"{API}/issue/{issue_id_or_key}/comment", json={"body": markdown_to_adf(body)})
        except AtlassianError as exc:
            logger.error("Failed to add comment: %s", exc)
            return False
        return True

    def _issue_info(self, issue: Mapping[str, Any], fallback_key: str) -> IssueInfo:
        fields = issue.get("fields") or {}
        key = issue.get("key") or fallback_key
        description = render_text(fields.get("description"))
        return IssueInfo(
            id=str(issue.get("id") or fallback_key),
            key=key,
            summary=fields.get("summary") or "No summary",
            status=_name(fields.get("status")) or "Unknown",
            issue_type=_name(fields.get("issuetype")) or "Unknown",
            priority=_name(fields.get("priority")),
            assignee=_display_name(fields.get("assignee")),
            reporter=_display_name(fields.get("reporter")),
            description=description or None,
            created=fields.get("created"),
            updated=fields.get("updated"),
            labels=fields.get("labels"),
            story_points=fields.get(self.story_points_field),
            url=self.issue_url(key),
        )


def _description_adf(description: Description) -> Mapping[str, Any]:
    if isinstance(description, str):
        return markdown_to_adf(description)
    return description


def _name(value: Any) -> Optional[str]:
    return value.get("name") if isinstance(value, Mapping) else None


def _display_name(value: Any) -> Optional[str]:
    return value.get("displayName") if isinstance(value, Mapping) else None
