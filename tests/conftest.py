"""Test configuration and fixtures."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from jira_hygiene.config import AppSettings
from jira_hygiene.jira_client.models import JiraIssue, JiraUser

IssueFactory = Callable[..., JiraIssue]


@pytest.fixture(autouse=True)
def clear_credential_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer credentials from leaking into settings tests."""
    for name in ("JIRA_BASE_URL", "JIRA_EMAIL", "JIRA_API_TOKEN", "SENDGRID_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_issue() -> IssueFactory:
    """Build JiraIssue objects with an optional assignee."""

    def _make(
        key: str,
        summary: str = "Summary",
        email: str | None = None,
        name: str | None = None,
        account_id: str | None = None,
        assigned: bool = True,
    ) -> JiraIssue:
        assignee = (
            JiraUser(email_address=email, display_name=name, account_id=account_id)
            if assigned
            else None
        )
        return JiraIssue(key=key, summary=summary, assignee=assignee)

    return _make


@pytest.fixture
def settings_payload() -> dict[str, Any]:
    """A complete, valid settings document."""
    return {
        "Jira": {
            "BaseUrl": "https://example.atlassian.net",
            "Email": "bot@example.com",
            "ApiToken": "jira-token",
            "Filters": [
                {"Id": 101, "Description": "Please close or update stale issues."},
                {"Id": 102, "Description": "Please set a due date."},
            ],
            "EnableComments": False,
            "LogComments": True,
            "CommentDupDaysSkip": 7,
        },
        "SendGrid": {
            "ApiKey": "sg-key",
            "FromEmail": "hygiene@example.com",
            "FromName": "Jira Data Hygiene",
            "SubjectTemplate": "[Jira] {IssueCount} issues for {Assignee}",
            "BodyTemplate": "Hello {Assignee},\n{Filters}",
            "ContentType": "text/plain",
            "DryRun": False,
            "DryRunMaxEmails": 0,
            "DryRunEmail": "qa@example.com",
            "DryRunName": "QA",
            "FooterText": "-- hygiene bot",
            "FooterHtml": "<p>hygiene bot</p>",
            "CcEmails": "",
        },
    }


@pytest.fixture
def app_settings(settings_payload: dict[str, Any]) -> AppSettings:
    return AppSettings.model_validate(settings_payload)


@pytest.fixture
def settings_file(tmp_path: Path, settings_payload: dict[str, Any]) -> Path:
    path = tmp_path / "appsettings.json"
    path.write_text(json.dumps(settings_payload), encoding="utf-8")
    return path
