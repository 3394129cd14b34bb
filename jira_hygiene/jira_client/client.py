"""Jira Cloud REST API client using httpx."""

import os
from typing import Any

import httpx

from ..run_log import RunLog
from ..utils.date_parser import try_parse_jira_timestamp
from ..utils.urls import ensure_trailing_slash
from .documents import DocNode, reminder_comment
from .models import JiraComment, JiraIssue, JiraUser

PAGE_SIZE = 50
ISSUE_FIELDS = "summary,assignee"


class JiraClient:
    """Jira API client with basic authentication and paginated reads.

    Every call is attempted once. Failures are written to the run log and
    turned into fallback values so a single bad filter or issue never stops
    the run.
    """

    def __init__(
        self,
        base_url: str,
        email: str | None = None,
        api_token: str | None = None,
        run_log: RunLog | None = None,
        http_client: httpx.Client | None = None,
        timeout: float = 30.0,
    ):
        """Initialize Jira client with authentication.

        Args:
            base_url: Jira site URL, e.g. https://example.atlassian.net
            email: Account email for basic auth. If None, reads JIRA_EMAIL.
            api_token: API token for basic auth. If None, reads JIRA_API_TOKEN.
            run_log: Run log receiving error lines
            http_client: Preconfigured client (tests inject a mock transport)
            timeout: Request timeout in seconds
        """
        self.base_url = ensure_trailing_slash(base_url)
        self.run_log = run_log if run_log is not None else RunLog()

        if http_client is not None:
            self.http = http_client
            return

        email = email or os.getenv("JIRA_EMAIL")
        api_token = api_token or os.getenv("JIRA_API_TOKEN")
        if not email or not api_token:
            raise ValueError(
                "Jira credentials are required. Set JIRA_EMAIL and "
                "JIRA_API_TOKEN environment variables."
            )

        self.http = httpx.Client(
            base_url=self.base_url,
            auth=(email, api_token),
            headers={
                "Accept": "application/json",
                "User-Agent": "jira-hygiene/0.1.0",
            },
            timeout=timeout,
        )

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "JiraClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        return self.http.get(url, params=params)

    def _describe_failure(self, response: httpx.Response) -> str:
        return f"{response.status_code} {response.text}"

    def _convert_user(self, payload: Any) -> JiraUser | None:
        """Convert an API user object to our model."""
        if not isinstance(payload, dict):
            return None
        return JiraUser(
            account_id=payload.get("accountId"),
            display_name=payload.get("displayName"),
            email_address=payload.get("emailAddress"),
        )

    def _convert_issue(self, payload: dict[str, Any]) -> JiraIssue:
        """Convert an API issue object to our model."""
        fields = payload.get("fields") or {}
        return JiraIssue(
            key=payload.get("key", ""),
            summary=fields.get("summary") or "",
            assignee=self._convert_user(fields.get("assignee")),
        )

    def _convert_comment(self, payload: dict[str, Any]) -> JiraComment:
        """Convert an API comment object to our model."""
        comment_id = payload.get("id")
        return JiraComment(
            id=str(comment_id) if comment_id is not None else None,
            body=DocNode.from_payload(payload.get("body")),
            created=try_parse_jira_timestamp(payload.get("created")),
        )

    def get_filter_name(self, filter_id: int) -> str:
        """Get the display name of a saved filter.

        Falls back to ``Filter {id}`` when the filter cannot be read.
        """
        fallback = f"Filter {filter_id}"
        try:
            response = self._get(f"rest/api/3/filter/{filter_id}")
        except httpx.HTTPError as e:
            self.run_log.error(f"Failed to load filter name {filter_id}: {e}")
            return fallback

        if not response.is_success:
            self.run_log.error(
                f"Failed to load filter name {filter_id}: "
                f"{self._describe_failure(response)}"
            )
            return fallback

        try:
            payload = response.json()
        except ValueError as e:
            self.run_log.error(f"Invalid filter payload for {filter_id}: {e}")
            return fallback

        name = payload.get("name") if isinstance(payload, dict) else None
        return name if isinstance(name, str) and name.strip() else fallback

    def list_issues_for_filter(self, filter_id: int) -> list[JiraIssue]:
        """Collect every issue matched by a saved filter, in result order.

        A failed page ends the collection; issues from earlier pages are kept.

        Args:
            filter_id: Saved filter identifier

        Returns:
            List of JiraIssue objects
        """
        issues: list[JiraIssue] = []
        start_at = 0
        next_page_token: str | None = None

        while True:
            params: dict[str, Any] = {
                "jql": f"filter={filter_id}",
                "startAt": start_at,
                "maxResults": PAGE_SIZE,
                "fields": ISSUE_FIELDS,
            }
            if next_page_token:
                params["nextPageToken"] = next_page_token

            try:
                response = self._get("rest/api/3/search/jql", params=params)
            except httpx.HTTPError as e:
                self.run_log.error(f"Failed to load filter {filter_id}: {e}")
                break

            if not response.is_success:
                self.run_log.error(
                    f"Failed to load filter {filter_id}: "
                    f"{self._describe_failure(response)}"
                )
                break

            try:
                payload = response.json()
            except ValueError as e:
                self.run_log.error(f"Invalid search payload for filter {filter_id}: {e}")
                break

            page = payload.get("issues") if isinstance(payload, dict) else None
            if not isinstance(page, list) or not page:
                break

            issues.extend(
                self._convert_issue(item) for item in page if isinstance(item, dict)
            )
            start_at += len(page)

            total = payload.get("total")
            if isinstance(total, int):
                if start_at >= total:
                    break
                continue

            # Token-paged responses carry no total
            next_page_token = payload.get("nextPageToken")
            if payload.get("isLast", False) or not next_page_token:
                break

        return issues

    def list_comments(self, issue_key: str) -> list[JiraComment]:
        """Collect an issue's comments, oldest first.

        A failed page ends the collection; comments from earlier pages are kept.
        """
        comments: list[JiraComment] = []
        start_at = 0

        while True:
            url = f"rest/api/3/issue/{issue_key}/comment"
            params = {"startAt": start_at, "maxResults": PAGE_SIZE}
            try:
                response = self._get(url, params=params)
            except httpx.HTTPError as e:
                self.run_log.error(f"Failed to load comments for {issue_key}: {e}")
                break

            if not response.is_success:
                self.run_log.error(
                    f"Failed to load comments for {issue_key}: "
                    f"{self._describe_failure(response)}"
                )
                break

            try:
                payload = response.json()
            except ValueError as e:
                self.run_log.error(f"Invalid comment payload for {issue_key}: {e}")
                break

            page = payload.get("comments") if isinstance(payload, dict) else None
            if not isinstance(page, list) or not page:
                break

            comments.extend(
                self._convert_comment(item) for item in page if isinstance(item, dict)
            )
            start_at += len(page)

            total = payload.get("total")
            if not isinstance(total, int) or start_at >= total:
                break

        return comments

    def add_comment(self, issue_key: str, account_id: str, message: str) -> bool:
        """Post a reminder comment mentioning the assignee.

        Args:
            issue_key: Issue to comment on
            account_id: Assignee account id for the mention
            message: Reminder text; the hygiene marker is appended

        Returns:
            True if Jira accepted the comment, False otherwise
        """
        body = {"body": reminder_comment(account_id, message).to_payload()}
        try:
            response = self.http.post(f"rest/api/3/issue/{issue_key}/comment", json=body)
        except httpx.HTTPError as e:
            self.run_log.error(f"Failed to comment on {issue_key}: {e}")
            return False

        if response.is_success:
            return True

        self.run_log.error(
            f"Failed to comment on {issue_key}: {self._describe_failure(response)}"
        )
        return False
