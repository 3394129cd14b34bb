"""Fold per-filter issue lists into per-assignee digests."""

from collections.abc import Iterable

from pydantic import BaseModel, Field

from ..jira_client.models import JiraIssue
from ..run_log import RunLog
from ..utils.urls import issue_url


class FilterResult(BaseModel):
    """Issues returned by one configured filter during a run."""

    filter_id: int = Field(..., description="Jira filter id")
    filter_name: str = Field(..., description="Filter name, or 'Filter {id}'")
    description: str = Field("", description="Configured filter description")
    issues: list[JiraIssue] = Field(
        default_factory=list, description="Issues in result order"
    )


class IssueEntry(BaseModel):
    """An issue as listed in a digest."""

    key: str
    summary: str
    filter_id: int
    issue_url: str


class FilterBucket(BaseModel):
    """One assignee's issues from one filter, in arrival order."""

    filter_id: int
    filter_name: str
    description: str = ""
    issues: list[IssueEntry] = Field(default_factory=list)


class AssigneeBucket(BaseModel):
    """Everything one recipient is notified about in a run."""

    email: str
    display_name: str | None = None
    filters: dict[int, FilterBucket] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        """Display name, falling back to the email address."""
        return self.display_name or self.email

    @property
    def issue_count(self) -> int:
        return sum(len(bucket.issues) for bucket in self.filters.values())

    def add_issue(self, filter_result: FilterResult, entry: IssueEntry) -> None:
        bucket = self.filters.get(filter_result.filter_id)
        if bucket is None:
            bucket = FilterBucket(
                filter_id=filter_result.filter_id,
                filter_name=filter_result.filter_name,
                description=filter_result.description,
            )
            self.filters[filter_result.filter_id] = bucket
        bucket.issues.append(entry)


def email_key(email: str) -> str:
    """Case-insensitive identity of an assignee email."""
    return email.strip().casefold()


def aggregate(
    filter_results: Iterable[FilterResult],
    base_url: str,
    run_log: RunLog | None = None,
) -> dict[str, AssigneeBucket]:
    """Group issues by assignee email, then by filter.

    Issues without an assignee or without a visible assignee email are
    skipped. The returned mapping is keyed by the casefolded email and keeps
    first-seen order, which is the order digests are sent in.

    Args:
        filter_results: Filter results in configured order
        base_url: Jira site URL used to build issue links
        run_log: Run log receiving skip notices

    Returns:
        Mapping of email key to AssigneeBucket
    """
    run_log = run_log if run_log is not None else RunLog()
    assignees: dict[str, AssigneeBucket] = {}

    for filter_result in filter_results:
        for issue in filter_result.issues:
            if issue.assignee is None:
                run_log.info(f"Skipping {issue.key}: no assignee.")
                continue

            email = issue.assignee_email
            if not email or not email.strip():
                run_log.info(f"Skipping {issue.key}: assignee email not available.")
                continue

            key = email_key(email)
            bucket = assignees.get(key)
            if bucket is None:
                bucket = AssigneeBucket(
                    email=email.strip(),
                    display_name=issue.assignee_display_name or None,
                )
                assignees[key] = bucket
            elif not bucket.display_name:
                bucket.display_name = issue.assignee_display_name or None

            bucket.add_issue(
                filter_result,
                IssueEntry(
                    key=issue.key,
                    summary=issue.summary,
                    filter_id=filter_result.filter_id,
                    issue_url=issue_url(base_url, issue.key),
                ),
            )

    return assignees
