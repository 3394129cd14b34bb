"""Tests for the hygiene run orchestration."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import httpx
import pytest

from jira_hygiene.config import AppSettings
from jira_hygiene.hygiene.orchestrator import (
    RUN_LOG_SUBJECT,
    HygieneRun,
    RunStage,
    RunSummary,
    format_run_summary,
)
from jira_hygiene.jira_client.client import JiraClient
from jira_hygiene.jira_client.documents import DocNode
from jira_hygiene.jira_client.models import JiraComment, JiraIssue
from jira_hygiene.run_log import RunLog

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)

IssueFactory = Callable[..., JiraIssue]


def make_jira(issues_by_filter: dict[int, list[JiraIssue]]) -> Mock:
    jira = Mock()
    jira.get_filter_name.side_effect = lambda filter_id: f"Filter {filter_id}"
    jira.list_issues_for_filter.side_effect = lambda filter_id: issues_by_filter.get(
        filter_id, []
    )
    jira.list_comments.return_value = []
    jira.add_comment.return_value = True
    return jira


def make_mailer(sent: bool = True) -> Mock:
    mailer = Mock()
    mailer.send.return_value = sent
    mailer.send_log.return_value = True
    return mailer


def make_run(settings: AppSettings, jira: Mock, mailer: Mock) -> HygieneRun:
    ticks = iter([100.0, 165.0])
    return HygieneRun(
        settings,
        jira,
        mailer,
        run_log=RunLog(),
        clock=lambda: NOW,
        timer=lambda: next(ticks),
    )


class TestFormatRunSummary:
    """Test format_run_summary function."""

    def test_without_failures(self) -> None:
        summary = RunSummary(
            duration=timedelta(seconds=65),
            filters_loaded=2,
            issues_identified=3,
            emails_sent=1,
            recipients=1,
            comments_created=2,
        )
        assert format_run_summary(summary) == (
            "Run summary: Duration=0:01:05, FiltersLoaded=2, IssuesIdentified=3, "
            "EmailsSent=1 to 1 recipients, CommentsCreated=2."
        )

    def test_with_failures(self) -> None:
        summary = RunSummary(email_failures=2, comment_failures=1)
        assert format_run_summary(summary).endswith(
            "Failures: Emails=2, Comments=1."
        )


class TestHygieneRun:
    """Test HygieneRun stages end to end with mocked clients."""

    def test_two_filter_digest(
        self, app_settings: AppSettings, make_issue: IssueFactory
    ) -> None:
        jira = make_jira(
            {
                101: [
                    make_issue("OPS-1", email="jane@x.com", name="Jane"),
                    make_issue("OPS-2", email="jane@x.com", name="Jane"),
                ],
                102: [make_issue("OPS-3", email="JANE@x.com", name="Jane")],
            }
        )
        mailer = make_mailer()
        hygiene_run = make_run(app_settings, jira, mailer)

        summary = hygiene_run.run()

        assert summary.filters_loaded == 2
        assert summary.issues_identified == 3
        assert summary.emails_sent == 1
        assert summary.recipients == 1
        assert summary.duration == timedelta(seconds=65)
        assert hygiene_run.stage is RunStage.DONE

        mailer.send.assert_called_once()
        to_email, to_name, subject, body = mailer.send.call_args.args
        assert (to_email, to_name) == ("jane@x.com", "Jane")
        assert subject == "[Jira] 3 issues for Jane"
        assert body.startswith("Hello Jane,\nFilter: Filter 101 (101)")
        assert "- OPS-3: Summary" in body
        assert body.endswith("\n\n-- hygiene bot")

        entries = hygiene_run.run_log.snapshot()
        assert "Loading issues for filter Filter 101 (101) ..." in entries
        assert "Sent email to jane@x.com for 3 issues." in entries
        assert entries[-1].startswith("Run summary:")

    def test_dry_run_cap(
        self, app_settings: AppSettings, make_issue: IssueFactory
    ) -> None:
        app_settings.send_grid.dry_run = True
        app_settings.send_grid.dry_run_max_emails = 2
        jira = make_jira(
            {101: [make_issue(f"OPS-{i}", email=f"user{i}@x.com") for i in range(5)]}
        )
        mailer = make_mailer()
        hygiene_run = make_run(app_settings, jira, mailer)

        summary = hygiene_run.run()

        assert mailer.send.call_count == 2
        assert {c.args[0] for c in mailer.send.call_args_list} == {"qa@example.com"}
        assert mailer.send.call_args.args[1] == "QA"
        assert summary.emails_sent == 2
        assert summary.recipients == 1
        entries = hygiene_run.run_log.snapshot()
        assert "[DryRun] Sent email to qa@example.com for 1 issues." in entries
        assert (
            "[DryRun] Reached DryRunMaxEmails (2). Skipping remaining emails." in entries
        )

    def test_unlimited_dry_run(
        self, app_settings: AppSettings, make_issue: IssueFactory
    ) -> None:
        app_settings.send_grid.dry_run = True
        jira = make_jira(
            {101: [make_issue(f"OPS-{i}", email=f"user{i}@x.com") for i in range(5)]}
        )
        mailer = make_mailer()

        make_run(app_settings, jira, mailer).run()

        assert mailer.send.call_count == 5

    def test_cap_ignored_outside_dry_run(
        self, app_settings: AppSettings, make_issue: IssueFactory
    ) -> None:
        app_settings.send_grid.dry_run_max_emails = 1
        jira = make_jira(
            {101: [make_issue(f"OPS-{i}", email=f"user{i}@x.com") for i in range(3)]}
        )
        mailer = make_mailer()

        summary = make_run(app_settings, jira, mailer).run()

        assert mailer.send.call_count == 3
        assert summary.recipients == 3

    def test_send_failures_are_counted(
        self, app_settings: AppSettings, make_issue: IssueFactory
    ) -> None:
        jira = make_jira({101: [make_issue("OPS-1", email="jane@x.com", name="Jane")]})
        hygiene_run = make_run(app_settings, jira, make_mailer(sent=False))

        summary = hygiene_run.run()

        assert summary.emails_sent == 0
        assert summary.email_failures == 1
        assert summary.recipients == 0
        assert (
            "Failed to send email to jane@x.com for 1 issues."
            in hygiene_run.run_log.snapshot()
        )

    def test_no_issues_sends_nothing(self, app_settings: AppSettings) -> None:
        mailer = make_mailer()

        summary = make_run(app_settings, make_jira({}), mailer).run()

        mailer.send.assert_not_called()
        assert summary.issues_identified == 0


class TestPostComments:
    """Test the comment stage."""

    @pytest.fixture
    def settings(self, app_settings: AppSettings) -> AppSettings:
        app_settings.jira.enable_comments = True
        return app_settings

    def test_comments_skipped_when_disabled(
        self, app_settings: AppSettings, make_issue: IssueFactory
    ) -> None:
        jira = make_jira({101: [make_issue("OPS-1", email="a@x.com", account_id="acc")]})

        make_run(app_settings, jira, make_mailer()).run()

        jira.list_comments.assert_not_called()
        jira.add_comment.assert_not_called()

    def test_posts_filter_description(
        self, settings: AppSettings, make_issue: IssueFactory
    ) -> None:
        jira = make_jira({101: [make_issue("OPS-1", email="a@x.com", account_id="acc")]})
        hygiene_run = make_run(settings, jira, make_mailer())

        summary = hygiene_run.run()

        jira.add_comment.assert_called_once_with(
            "OPS-1", "acc", "Please close or update stale issues."
        )
        assert summary.comments_created == 1
        assert (
            "Commenting on OPS-1: Please close or update stale issues."
            in hygiene_run.run_log.snapshot()
        )

    def test_recent_reminder_not_counted(
        self, settings: AppSettings, make_issue: IssueFactory
    ) -> None:
        jira = make_jira({101: [make_issue("OPS-1", email="a@x.com", account_id="acc")]})
        jira.list_comments.return_value = [
            JiraComment(
                body=DocNode.from_payload(
                    "Please close or update stale issues. #datahygiene"
                ),
                created=NOW - timedelta(days=2),
            )
        ]

        summary = make_run(settings, jira, make_mailer()).run()

        jira.add_comment.assert_not_called()
        assert summary.comments_created == 0
        assert summary.comment_failures == 0

    def test_failed_post_is_counted(
        self, settings: AppSettings, make_issue: IssueFactory
    ) -> None:
        jira = make_jira({101: [make_issue("OPS-1", email="a@x.com", account_id="acc")]})
        jira.add_comment.return_value = False

        summary = make_run(settings, jira, make_mailer()).run()

        assert summary.comments_created == 0
        assert summary.comment_failures == 1

    def test_preconditions(self, settings: AppSettings, make_issue: IssueFactory) -> None:
        settings.jira.filters[1].description = "   "
        jira = make_jira(
            {
                101: [
                    make_issue("OPS-1", email=None, account_id="acc"),
                    make_issue("OPS-2", email="a@x.com", account_id=None),
                ],
                102: [make_issue("OPS-3", email="a@x.com", account_id="acc")],
            }
        )
        hygiene_run = make_run(settings, jira, make_mailer())

        hygiene_run.run()

        jira.add_comment.assert_not_called()
        assert (
            "Skipping comment for OPS-2: assignee accountId not available."
            in hygiene_run.run_log.snapshot()
        )

    def test_dry_run_posts_nothing(
        self, settings: AppSettings, make_issue: IssueFactory
    ) -> None:
        settings.send_grid.dry_run = True
        jira = make_jira({101: [make_issue("OPS-1", email="a@x.com", account_id="acc")]})
        hygiene_run = make_run(settings, jira, make_mailer())

        summary = hygiene_run.run()

        jira.list_comments.assert_not_called()
        jira.add_comment.assert_not_called()
        assert summary.comments_created == 0
        assert (
            "[DryRun] Would comment on OPS-1: Please close or update stale issues."
            in hygiene_run.run_log.snapshot()
        )


class TestSendRunLog:
    """Test mailing the run log."""

    def test_sent_when_enabled(self, app_settings: AppSettings) -> None:
        app_settings.send_grid.send_log_email = True
        app_settings.send_grid.log_email = "admin@x.com"
        mailer = make_mailer()
        hygiene_run = make_run(app_settings, make_jira({}), mailer)

        hygiene_run.run()

        mailer.send_log.assert_called_once()
        to_email, subject, body = mailer.send_log.call_args.args
        assert to_email == "admin@x.com"
        assert subject == RUN_LOG_SUBJECT
        assert "Run summary:" in body
        assert hygiene_run.run_log.snapshot()[-1] == "Sent run log to admin@x.com."

    def test_not_sent_without_address(self, app_settings: AppSettings) -> None:
        app_settings.send_grid.send_log_email = True
        mailer = make_mailer()

        make_run(app_settings, make_jira({}), mailer).run()

        mailer.send_log.assert_not_called()

    def test_failure_is_logged(self, app_settings: AppSettings) -> None:
        app_settings.send_grid.send_log_email = True
        app_settings.send_grid.log_email = "admin@x.com"
        mailer = make_mailer()
        mailer.send_log.return_value = False
        hygiene_run = make_run(app_settings, make_jira({}), mailer)

        hygiene_run.run()

        assert hygiene_run.run_log.error_count == 1

    def test_shared_log_is_kept_by_every_stage(
        self, app_settings: AppSettings
    ) -> None:
        shared = RunLog()

        hygiene_run = HygieneRun(app_settings, Mock(), Mock(), run_log=shared)

        assert hygiene_run.run_log is shared
        assert hygiene_run.commenter.run_log is shared

    def test_client_errors_reach_the_mailed_log(
        self, app_settings: AppSettings
    ) -> None:
        app_settings.send_grid.send_log_email = True
        app_settings.send_grid.log_email = "admin@x.com"
        run_log = RunLog()

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.startswith("/rest/api/3/filter/"):
                return httpx.Response(200, json={"name": "Stale"})
            return httpx.Response(500, text="search down")

        http = httpx.Client(
            base_url="https://example.atlassian.net/",
            transport=httpx.MockTransport(handler),
        )
        jira = JiraClient(
            "https://example.atlassian.net", run_log=run_log, http_client=http
        )
        mailer = make_mailer()

        HygieneRun(
            app_settings, jira, mailer, run_log=run_log, clock=lambda: NOW
        ).run()

        body = mailer.send_log.call_args.args[2]
        assert "Failed to load filter 101: 500 search down" in body
        assert "Failed to load filter 102: 500 search down" in body
