"""Atlassian credentials and client settings.

Settings come from environment variables, or from a `.env` file in the
working directory.
"""

from __future__ import annotations

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .console import log

API_TOKEN_URL = "https://id.atlassian.com/manage-profile/security/api-tokens"


class AtlassianSettings(BaseSettings):
    """Shared Jira/Confluence settings."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    site: str = Field(..., min_length=1, validation_alias="ATLASSIAN_SITE")
    email: str = Field(..., min_length=1, validation_alias="ATLASSIAN_EMAIL")
    api_token: str = Field(..., min_length=1, validation_alias="ATLASSIAN_API_TOKEN")
    story_points_field: str = Field(
        default="customfield_10031",
        validation_alias="JIRA_STORY_POINTS_FIELD",
    )
    timeout: float = Field(default=30.0, gt=0, validation_alias="ATLASSIAN_TIMEOUT")

    @field_validator("site", mode="before")
    @classmethod
    def normalize_site(cls, v: str) -> str:
        """Accept `https://acme.atlassian.net/` as well as `acme.atlassian.net`."""
        site = str(v or "").strip()
        for scheme in ("https://", "http://"):
            if site.startswith(scheme):
                site = site[len(scheme) :]
        return site.rstrip("/")

    @property
    def base_url(self) -> str:
        return f"https://{self.site}"


def load_settings() -> AtlassianSettings:
    """Load settings, or print the credential help and exit with status 1."""
    try:
        return AtlassianSettings()
    except ValidationError:
        _print_missing_credentials_help()
        raise SystemExit(1) from None


def _print_missing_credentials_help() -> None:
    log.error("Missing Atlassian credentials")
    log.blank()
    log.dim("  ATLASSIAN_SITE=your-site.atlassian.net")
    log.dim("  ATLASSIAN_EMAIL=you@example.com")
    log.dim("  ATLASSIAN_API_TOKEN=<token>")
    log.blank()
    log.dim(API_TOKEN_URL)
