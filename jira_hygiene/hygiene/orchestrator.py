"""Sequence one hygiene run from filter loading to the run summary."""

import time
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol

from pydantic import BaseModel

from ..config import AppSettings
from ..jira_client.models import JiraIssue
from ..run_log import RunLog
from .aggregator import AssigneeBucket, FilterResult, aggregate
from .freshness import CommentDecision, CommentSource, ReminderCommenter, utc_now
from .templates import ContentMode, EmailTemplateBuilder

RUN_LOG_SUBJECT = "Jira Data Hygiene - Run Log"


class IssueSource(CommentSource, Protocol):
    def get_filter_name(self, filter_id: int) -> str: ...

    def list_issues_for_filter(self, filter_id: int) -> list[JiraIssue]: ...


class NotificationSink(Protocol):
    def send(
        self,
        to_email: str,
        to_name: str | None,
        subject: str,
        body: str,
        cc: list[str] | None = None,
        content_type: str | None = None,
    ) -> bool: ...

    def send_log(self, to_email: str, subject: str, body: str) -> bool: ...


class RunStage(str, Enum):
    """Stages of a run, in the only order they are visited."""

    PENDING = "pending"
    LOAD_FILTERS = "load_filters"
    AGGREGATE = "aggregate"
    POST_COMMENTS = "post_comments"
    RENDER_AND_SEND = "render_and_send"
    EMIT_SUMMARY = "emit_summary"
    SEND_RUN_LOG = "send_run_log"
    DONE = "done"


class RunSummary(BaseModel):
    """Counts collected over a run."""

    duration: timedelta = timedelta(0)
    filters_loaded: int = 0
    issues_identified: int = 0
    emails_sent: int = 0
    email_failures: int = 0
    recipients: int = 0
    comments_created: int = 0
    comment_failures: int = 0


def format_run_summary(summary: RunSummary) -> str:
    """Human-readable one-line summary of a run."""
    text = (
        f"Run summary: Duration={summary.duration}, "
        f"FiltersLoaded={summary.filters_loaded}, "
        f"IssuesIdentified={summary.issues_identified}, "
        f"EmailsSent={summary.emails_sent} to {summary.recipients} recipients, "
        f"CommentsCreated={summary.comments_created}."
    )
    if summary.email_failures or summary.comment_failures:
        text += (
            f" Failures: Emails={summary.email_failures}, "
            f"Comments={summary.comment_failures}."
        )
    return text


class HygieneRun:
    """One pass over the configured filters.

    Network failures are logged and counted, never raised: a run always
    reaches its summary.
    """

    def __init__(
        self,
        settings: AppSettings,
        jira: IssueSource,
        mailer: NotificationSink,
        run_log: RunLog | None = None,
        clock: Callable[[], datetime] = utc_now,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.jira = jira
        self.mailer = mailer
        self.run_log = run_log if run_log is not None else RunLog()
        self.timer = timer
        self.stage = RunStage.PENDING
        self.summary = RunSummary()
        self.commenter = ReminderCommenter(
            jira,
            settings.jira.comment_dup_days_skip,
            run_log=self.run_log,
            clock=clock,
        )
        mail = settings.send_grid
        self.templates = EmailTemplateBuilder(
            settings.jira.base_url,
            mode=ContentMode.HTML if mail.use_html else ContentMode.PLAIN_TEXT,
            footer_html=mail.footer_html,
            footer_text=mail.footer_text,
        )

    @property
    def dry_run(self) -> bool:
        return self.settings.send_grid.dry_run

    @property
    def dry_run_prefix(self) -> str:
        return "[DryRun] " if self.dry_run else ""

    def _enter(self, stage: RunStage) -> None:
        self.stage = stage

    def load_filters(self) -> list[FilterResult]:
        """Fetch every configured filter's issues, in configured order."""
        self._enter(RunStage.LOAD_FILTERS)
        results = []
        for filter_config in self.settings.jira.filters:
            name = self.jira.get_filter_name(filter_config.id)
            self.run_log.info(f"Loading issues for filter {name} ({filter_config.id}) ...")
            issues = self.jira.list_issues_for_filter(filter_config.id)
            results.append(
                FilterResult(
                    filter_id=filter_config.id,
                    filter_name=name,
                    description=filter_config.description,
                    issues=issues,
                )
            )
        return results

    def aggregate(self, filter_results: list[FilterResult]) -> dict[str, AssigneeBucket]:
        self._enter(RunStage.AGGREGATE)
        self.summary.issues_identified = sum(len(r.issues) for r in filter_results)
        return aggregate(filter_results, self.settings.jira.base_url, self.run_log)

    def post_comments(self, filter_results: list[FilterResult]) -> None:
        """Remind each assignee on the issue itself, once per freshness window."""
        self._enter(RunStage.POST_COMMENTS)
        log_comments = self.settings.jira.log_comments

        for filter_result in filter_results:
            message = filter_result.description
            for issue in filter_result.issues:
                email = issue.assignee_email
                if not email or not email.strip():
                    continue

                account_id = issue.assignee_account_id
                if not account_id or not account_id.strip():
                    self.run_log.info(
                        f"Skipping comment for {issue.key}: "
                        f"assignee accountId not available."
                    )
                    continue

                if not message.strip():
                    continue

                if log_comments:
                    if self.dry_run:
                        self.run_log.info(
                            f"[DryRun] Would comment on {issue.key}: {message}"
                        )
                    else:
                        self.run_log.info(f"Commenting on {issue.key}: {message}")

                if self.dry_run:
                    continue

                outcome = self.commenter.comment(issue.key, account_id, message)
                if outcome.posted:
                    self.summary.comments_created += 1
                elif outcome.decision is not CommentDecision.SKIP:
                    self.summary.comment_failures += 1

    def send_emails(self, assignees: dict[str, AssigneeBucket]) -> None:
        """Render and send one digest per assignee, in first-seen order."""
        self._enter(RunStage.RENDER_AND_SEND)
        mail = self.settings.send_grid
        attempts = 0
        recipients: set[str] = set()

        for bucket in assignees.values():
            if self.dry_run and mail.dry_run_max_emails > 0:
                if attempts >= mail.dry_run_max_emails:
                    self.run_log.info(
                        f"[DryRun] Reached DryRunMaxEmails ({mail.dry_run_max_emails}). "
                        f"Skipping remaining emails."
                    )
                    break

            issue_count = bucket.issue_count
            subject = self.templates.render(mail.subject_template, bucket, issue_count)
            body = self.templates.render(
                mail.body_template,
                bucket,
                issue_count,
                append_filters_when_missing=True,
                include_footer=True,
            )

            if self.dry_run:
                to_email = mail.dry_run_email
                to_name = mail.dry_run_name or mail.dry_run_email
            else:
                to_email = bucket.email
                to_name = bucket.name

            sent = self.mailer.send(to_email, to_name, subject, body)
            attempts += 1

            if sent:
                self.summary.emails_sent += 1
                recipients.add(to_email.casefold())
                self.run_log.info(
                    f"{self.dry_run_prefix}Sent email to {to_email} "
                    f"for {issue_count} issues."
                )
            else:
                self.summary.email_failures += 1
                self.run_log.info(
                    f"{self.dry_run_prefix}Failed to send email to {to_email} "
                    f"for {issue_count} issues."
                )

        self.summary.recipients = len(recipients)

    def send_run_log(self) -> None:
        """Mail the collected run log when configured to."""
        self._enter(RunStage.SEND_RUN_LOG)
        mail = self.settings.send_grid
        if not mail.send_log_email or not mail.log_email.strip():
            return

        entries = self.run_log.snapshot()
        if not entries:
            return

        if self.mailer.send_log(mail.log_email, RUN_LOG_SUBJECT, "\n".join(entries)):
            self.run_log.info(f"Sent run log to {mail.log_email}.")
        else:
            self.run_log.error(f"Failed to send run log to {mail.log_email}.")

    def run(self) -> RunSummary:
        """Execute every stage and return the collected counts."""
        started = self.timer()
        self.run_log.info(
            "Loading Jira issues from multiple data hygiene filters, aggregating "
            "them per assignee, and emailing each person the issues they need to fix."
        )

        filter_results = self.load_filters()
        self.summary.filters_loaded = len(filter_results)
        assignees = self.aggregate(filter_results)

        if self.settings.jira.enable_comments:
            self.post_comments(filter_results)

        self.send_emails(assignees)

        self._enter(RunStage.EMIT_SUMMARY)
        self.summary.duration = timedelta(seconds=self.timer() - started)
        self.run_log.info(format_run_summary(self.summary))

        self.send_run_log()
        self._enter(RunStage.DONE)
        return self.summary
