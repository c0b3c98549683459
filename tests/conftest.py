import pytest

from UncsKit.config import AtlassianSettings

ENV = {
    "ATLASSIAN_SITE": "https://acme.atlassian.net/",
    "ATLASSIAN_EMAIL": "dev@acme.test",
    "ATLASSIAN_API_TOKEN": "secret-token",
}


@pytest.fixture
def atlassian_env(monkeypatch, tmp_path):
    # Keep a developer's own .env out of the way.
    monkeypatch.chdir(tmp_path)
    for key in ("JIRA_STORY_POINTS_FIELD", "ATLASSIAN_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    for key, value in ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def settings(atlassian_env):
    return AtlassianSettings(_env_file=None)
