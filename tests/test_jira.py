import json

import httpx

from UncsKit.jira import UNASSIGN, CreateIssueParams, JiraClient, UpdateIssueParams

ISSUE = {
    "id": "10001",
    "key": "ENG-1",
    "fields": {
        "summary": "Fix login",
        "status": {"name": "In Progress"},
        "issuetype": {"name": "Bug"},
        "priority": {"name": "High"},
        "assignee": {"displayName": "Ada"},
        "reporter": None,
        "description": {
            "type": "doc",
            "version": 1,
            "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Steps to reproduce"}]}],
        },
        "created": "2024-01-02T03:04:05.000+0000",
        "labels": ["auth"],
        "customfield_10031": 3,
    },
}


def make_client(settings, handler):
    return JiraClient(settings, transport=httpx.MockTransport(handler))


def test_get_issue(settings):
    seen = {}

    def handler(request):
        seen["url"] = request.url
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json=ISSUE)

    with make_client(settings, handler) as client:
        issue = client.get_issue("ENG-1")

    assert seen["url"].path == "/rest/api/3/issue/ENG-1"
    assert "customfield_10031" in seen["url"].params["fields"]
    assert seen["auth"].startswith("Basic ")
    assert issue.summary == "Fix login"
    assert issue.status == "In Progress"
    assert issue.assignee == "Ada"
    assert issue.reporter is None
    assert issue.description == "Steps to reproduce"
    assert issue.story_points == 3
    assert issue.url == "https://acme.atlassian.net/browse/ENG-1"
    data = issue.to_dict()
    assert data["issueType"] == "Bug"
    assert "reporter" not in data


def test_get_issue_defaults_and_missing(settings):
    def handler(request):
        if request.url.path.endswith("ENG-2"):
            return httpx.Response(200, json={"key": "ENG-2", "fields": {}})
        return httpx.Response(404, json={"errorMessages": ["Issue does not exist"]})

    with make_client(settings, handler) as client:
        bare = client.get_issue("ENG-2")
        missing = client.get_issue("ENG-404")

    assert bare.summary == "No summary"
    assert bare.status == "Unknown"
    assert bare.description is None
    assert missing is None


def test_search_issues(settings):
    def handler(request):
        body = json.loads(request.content)
        assert request.url.path == "/rest/api/3/search/jql"
        assert body["jql"] == "project = ENG"
        assert body["maxResults"] == 10
        return httpx.Response(200, json={"issues": [ISSUE, {**ISSUE, "key": "ENG-3"}]})

    with make_client(settings, handler) as client:
        result = client.search_issues("project = ENG", max_results=10)

    assert result.total == 2
    assert [issue.key for issue in result.issues] == ["ENG-1", "ENG-3"]


def test_search_failure_returns_empty_result(settings):
    with make_client(settings, lambda request: httpx.Response(400, json={"errorMessages": ["bad jql"]})) as client:
        result = client.search_issues("nonsense ===")
    assert result.total == 0
    assert result.issues == []


def test_create_issue_sends_adf_and_refetches(settings):
    sent = {}

    def handler(request):
        if request.method == "POST":
            sent.update(json.loads(request.content)["fields"])
            return httpx.Response(201, json={"id": "10001", "key": "ENG-1"})
        return httpx.Response(200, json=ISSUE)

    params = CreateIssueParams(
        project_key="ENG",
        issue_type="Bug",
        summary="Fix login",
        description="# Steps\n- open page",
        labels=["auth"],
        assignee_account_id="acc-1",
        parent_key="ENG-0",
        story_points=3,
    )
    with make_client(settings, handler) as client:
        issue = client.create_issue(params)

    assert issue.key == "ENG-1"
    assert sent["project"] == {"key": "ENG"}
    assert sent["issuetype"] == {"name": "Bug"}
    assert sent["description"]["type"] == "doc"
    assert sent["description"]["content"][0]["type"] == "heading"
    assert sent["assignee"] == {"accountId": "acc-1"}
    assert sent["parent"] == {"key": "ENG-0"}
    assert sent["customfield_10031"] == 3
    assert "priority" not in sent


def test_update_issue_unassign_and_clear_labels(settings):
    sent = {}

    def handler(request):
        sent.update(json.loads(request.content)["fields"])
        return httpx.Response(204)

    with make_client(settings, handler) as client:
        ok = client.update_issue("ENG-1", UpdateIssueParams(labels=[], assignee_account_id=UNASSIGN))

    assert ok
    assert sent == {"labels": [], "assignee": None}


def test_update_issue_failure(settings):
    with make_client(settings, lambda request: httpx.Response(403)) as client:
        assert client.update_issue("ENG-1", UpdateIssueParams(summary="x")) is False


def test_find_user_and_projects(settings):
    def handler(request):
        if request.url.path.endswith("/user/search"):
            return httpx.Response(200, json=[{"accountId": "acc-1", "displayName": "Ada"}])
        return httpx.Response(
            200,
            json={"values": [{"id": "1", "key": "ENG", "name": "Engineering", "issueTypes": [{"id": "9", "name": "Bug"}]}]},
        )

    with make_client(settings, handler) as client:
        user = client.find_user("ada")
        projects = client.get_projects()

    assert user.account_id == "acc-1"
    assert user.to_dict() == {"accountId": "acc-1", "displayName": "Ada"}
    assert projects[0].to_dict()["issueTypes"] == [{"id": "9", "name": "Bug"}]


def test_add_comment_and_delete(settings):
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path, request.content))
        return httpx.Response(201 if request.method == "POST" else 204)

    with make_client(settings, handler) as client:
        assert client.add_comment("ENG-1", "Looks **good**")
        assert client.delete_issue("ENG-1")

    method, path, content = calls[0]
    assert (method, path) == ("POST", "/rest/api/3/issue/ENG-1/comment")
    assert json.loads(content)["body"]["content"][0]["content"][1]["marks"] == [{"type": "strong"}]
    assert calls[1][:2] == ("DELETE", "/rest/api/3/issue/ENG-1")


def test_transport_error_degrades(settings):
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    with make_client(settings, handler) as client:
        assert client.get_issue("ENG-1") is None
        assert client.delete_issue("ENG-1") is False
