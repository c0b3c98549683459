import pytest

from UncsKit.config import AtlassianSettings, load_settings


def test_settings_from_environment(settings):
    assert settings.site == "acme.atlassian.net"
    assert settings.base_url == "https://acme.atlassian.net"
    assert settings.email == "dev@acme.test"
    assert settings.story_points_field == "customfield_10031"
    assert settings.timeout == 30.0


def test_overrides_from_environment(atlassian_env, monkeypatch):
    monkeypatch.setenv("JIRA_STORY_POINTS_FIELD", "customfield_10016")
    monkeypatch.setenv("ATLASSIAN_TIMEOUT", "5")
    settings = AtlassianSettings(_env_file=None)
    assert settings.story_points_field == "customfield_10016"
    assert settings.timeout == 5.0


def test_settings_from_env_file(monkeypatch, tmp_path):
    for key in ("ATLASSIAN_SITE", "ATLASSIAN_EMAIL", "ATLASSIAN_API_TOKEN"):
        monkeypatch.delenv(key, raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text(
        "ATLASSIAN_SITE=http://team.atlassian.net\nATLASSIAN_EMAIL=a@b.c\nATLASSIAN_API_TOKEN=t\n",
        encoding="utf-8",
    )
    settings = AtlassianSettings(_env_file=env_file)
    assert settings.base_url == "https://team.atlassian.net"


def test_load_settings_exits_when_credentials_missing(atlassian_env, monkeypatch, capsys):
    monkeypatch.setenv("ATLASSIAN_API_TOKEN", "")
    with pytest.raises(SystemExit) as excinfo:
        load_settings()
    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert "ATLASSIAN_API_TOKEN" in out
    assert "id.atlassian.com" in out
