"""Settings for the hygiene run.

Settings are read from a JSON file (``appsettings.json`` by default) whose
keys are PascalCase, e.g. ``{"Jira": {"BaseUrl": ...}, "SendGrid": {...}}``.
Key matching is case-insensitive and snake_case names are accepted too.
Secrets may instead come from the environment (or a ``.env`` file):
JIRA_BASE_URL, JIRA_EMAIL, JIRA_API_TOKEN and SENDGRID_API_KEY.
"""

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_pascal

DEFAULT_SETTINGS_FILE = "appsettings.json"

VALID_CONTENT_TYPES = {"text/plain", "text/html"}

ENV_OVERRIDES = {
    "JIRA_BASE_URL": ("jira", "base_url"),
    "JIRA_EMAIL": ("jira", "email"),
    "JIRA_API_TOKEN": ("jira", "api_token"),
    "SENDGRID_API_KEY": ("send_grid", "api_key"),
}


class _SettingsModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_pascal, populate_by_name=True, extra="ignore"
    )

    @model_validator(mode="before")
    @classmethod
    def _match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        lookup: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            alias = field.alias or name
            lookup[alias.lower()] = alias
            lookup[name.replace("_", "").lower()] = alias

        normalized: dict[str, Any] = {}
        for key, value in data.items():
            folded = str(key).replace("_", "").lower()
            normalized[lookup.get(folded, key)] = value
        return normalized


class FilterConfig(_SettingsModel):
    """One saved Jira filter to audit."""

    id: int = Field(..., description="Jira filter id")
    description: str = Field(
        "", description="What the assignee should fix; also the reminder text"
    )


class JiraSettings(_SettingsModel):
    """Jira connection and comment settings."""

    base_url: str = ""
    email: str = ""
    api_token: str = ""
    filters: list[FilterConfig] = Field(default_factory=list)
    enable_comments: bool = False
    log_comments: bool = False
    comment_dup_days_skip: int = 7


class SendGridSettings(_SettingsModel):
    """Email delivery, templates and dry-run settings."""

    api_key: str = ""
    from_email: str = ""
    from_name: str = "Jira Data Hygiene"
    subject_template: str = "[Jira] {IssueCount} issues for {Assignee}"
    body_template: str = (
        "Hello {Assignee},\n\nPlease review the following {IssueCount} issues "
        "that are in inconsistent state:\n{Filters}"
    )
    content_type: str = "text/plain"
    dry_run: bool = False
    dry_run_max_emails: int = 0
    dry_run_email: str = ""
    dry_run_name: str = ""
    footer_html: str = ""
    footer_text: str = ""
    cc_emails: str = ""
    send_log_email: bool = False
    log_email: str = ""

    @property
    def use_html(self) -> bool:
        return self.content_type.strip().lower() == "text/html"


class AppSettings(_SettingsModel):
    """Top-level settings document."""

    jira: JiraSettings = Field(default_factory=JiraSettings)
    send_grid: SendGridSettings = Field(default_factory=SendGridSettings)


def resolve_settings_path(path: str | Path | None = None) -> Path | None:
    """Locate the settings file.

    Args:
        path: Explicit path; defaults to ``appsettings.json`` in the
            working directory

    Returns:
        Path of an existing file, or None when nothing was found
    """
    candidate = Path(path) if path else Path.cwd() / DEFAULT_SETTINGS_FILE
    return candidate if candidate.is_file() else None


def apply_env_overrides(settings: AppSettings) -> AppSettings:
    """Overlay non-empty environment variables onto loaded settings."""
    for env_name, (section, field) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            setattr(getattr(settings, section), field, value)
    return settings


def load_settings(path: str | Path) -> AppSettings:
    """Load settings from a JSON file and apply environment overrides.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or does not match the
            settings schema (pydantic's ValidationError is a ValueError)
    """
    settings_path = Path(path)
    raw = json.loads(settings_path.read_text(encoding="utf-8-sig"))
    if not isinstance(raw, dict):
        raise ValueError(f"{settings_path.name} must contain a JSON object")

    return apply_env_overrides(AppSettings.model_validate(raw))


def validate_settings(settings: AppSettings) -> list[str]:
    """Check that a run can start with these settings.

    Returns:
        List of error messages (empty if all valid)
    """
    errors = []
    jira = settings.jira
    mail = settings.send_grid

    if not jira.base_url.strip():
        errors.append("Jira.BaseUrl is required")
    elif not jira.base_url.strip().lower().startswith(("http://", "https://")):
        errors.append(f"Jira.BaseUrl must be an http(s) URL, got '{jira.base_url}'")

    if not jira.email.strip():
        errors.append("Jira.Email is required (or set JIRA_EMAIL)")
    if not jira.api_token.strip():
        errors.append("Jira.ApiToken is required (or set JIRA_API_TOKEN)")

    if not jira.filters:
        errors.append("No Jira filter IDs configured.")
    for filter_config in jira.filters:
        if filter_config.id <= 0:
            errors.append(f"Filter id must be positive, got {filter_config.id}")

    if not mail.api_key.strip():
        errors.append("SendGrid.ApiKey is required (or set SENDGRID_API_KEY)")
    if not mail.from_email.strip():
        errors.append("SendGrid.FromEmail is required")

    if mail.content_type.strip().lower() not in VALID_CONTENT_TYPES:
        errors.append(
            f"SendGrid.ContentType must be text/plain or text/html, "
            f"got '{mail.content_type}'"
        )

    if mail.dry_run_max_emails < 0:
        errors.append(
            f"SendGrid.DryRunMaxEmails must not be negative, got {mail.dry_run_max_emails}"
        )
    if mail.dry_run and not mail.dry_run_email.strip():
        errors.append("SendGrid.DryRunEmail is required when DryRun is enabled")

    return errors
