"""Pydantic models for Jira data structures.

These models map to the Jira Cloud REST API v3 response structures, flattened
to the fields the hygiene run needs.
API Reference: https://developer.atlassian.com/cloud/jira/platform/rest/v3/
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .documents import DocNode


class JiraUser(BaseModel):
    """Jira user model representing an issue assignee.

    Maps to the Jira REST API User object. Email visibility depends on the
    user's profile privacy settings, so it is frequently absent.
    API Reference: https://developer.atlassian.com/cloud/jira/platform/rest/v3/api-group-users/
    """

    account_id: str | None = Field(
        None, description="Atlassian account identifier used for mentions"
    )
    display_name: str | None = Field(None, description="Full display name")
    email_address: str | None = Field(
        None, description="Email address, when visible to the API user"
    )


class JiraIssue(BaseModel):
    """Jira issue model as returned by a filter search.

    Only the ``summary`` and ``assignee`` fields are requested from the API.
    API Reference: https://developer.atlassian.com/cloud/jira/platform/rest/v3/api-group-issue-search/
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Issue key, e.g. PROJ-123")
    summary: str = Field("", description="Issue summary line")
    assignee: JiraUser | None = Field(None, description="Current assignee, if any")

    @property
    def assignee_email(self) -> str | None:
        return self.assignee.email_address if self.assignee else None

    @property
    def assignee_display_name(self) -> str | None:
        return self.assignee.display_name if self.assignee else None

    @property
    def assignee_account_id(self) -> str | None:
        return self.assignee.account_id if self.assignee else None


class JiraComment(BaseModel):
    """Jira issue comment with its rich-text body.

    API Reference: https://developer.atlassian.com/cloud/jira/platform/rest/v3/api-group-issue-comments/
    """

    id: str | None = Field(None, description="Comment identifier")
    body: DocNode = Field(..., description="Comment body as a document tree")
    created: datetime | None = Field(
        None, description="Creation timestamp, None when missing or unparseable"
    )

    @property
    def text(self) -> str:
        """Flattened plain text of the comment body."""
        return self.body.plain_text()
