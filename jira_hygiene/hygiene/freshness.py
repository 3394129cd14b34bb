"""Decide whether an issue needs a new reminder comment.

Every automated reminder ends with a fixed marker. Before posting, the
issue's comment history is scanned for an earlier reminder carrying the same
message; a recent one suppresses the new comment, an old one does not.
"""

import math
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol

from pydantic import BaseModel

from ..jira_client.documents import marked_text
from ..jira_client.models import JiraComment
from ..run_log import RunLog
from ..utils.date_parser import age_in_days


class CommentDecision(str, Enum):
    SKIP = "skip"
    POST = "post"
    POST_AS_DUPLICATE = "post_as_duplicate"


class CommentOutcome(BaseModel):
    """What happened for one (issue, message) pair."""

    issue_key: str
    decision: CommentDecision
    posted: bool = False
    latest_match: datetime | None = None


class CommentSource(Protocol):
    def list_comments(self, issue_key: str) -> list[JiraComment]: ...

    def add_comment(self, issue_key: str, account_id: str, message: str) -> bool: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def latest_matching_comment(
    comments: Iterable[JiraComment], message: str, now: datetime
) -> datetime | None:
    """Creation time of the newest comment carrying the marked ``message``.

    Matching is a case-insensitive substring test on the flattened body.
    A matching comment without a usable timestamp counts as ``now``, but only
    when no dated match exists.
    """
    expected = marked_text(message).casefold()
    latest: datetime | None = None
    undated_match = False

    for comment in comments:
        if expected not in comment.text.casefold():
            continue
        if comment.created is None:
            undated_match = True
        elif latest is None or comment.created > latest:
            latest = comment.created

    if latest is None and undated_match:
        return now
    return latest


def decide(
    latest_match: datetime | None, dup_days_skip: int, now: datetime
) -> CommentDecision:
    """Apply the freshness window to the newest matching reminder.

    A window of zero or less means any earlier reminder suppresses a new one.
    """
    if latest_match is None:
        return CommentDecision.POST
    if dup_days_skip <= 0:
        return CommentDecision.SKIP
    if age_in_days(latest_match, now) < dup_days_skip:
        return CommentDecision.SKIP
    return CommentDecision.POST_AS_DUPLICATE


class ReminderCommenter:
    """Posts reminder comments unless a fresh one already exists."""

    def __init__(
        self,
        source: CommentSource,
        dup_days_skip: int,
        run_log: RunLog | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.source = source
        self.dup_days_skip = dup_days_skip
        self.run_log = run_log if run_log is not None else RunLog()
        self.clock = clock

    def should_skip_comment(
        self, issue_key: str, message: str
    ) -> tuple[CommentDecision, datetime | None]:
        """Look up the comment history and decide, logging the reason."""
        now = self.clock()
        latest = latest_matching_comment(
            self.source.list_comments(issue_key), message, now
        )
        decision = decide(latest, self.dup_days_skip, now)

        if decision is CommentDecision.SKIP and latest is not None:
            if self.dup_days_skip <= 0:
                self.run_log.info(
                    f"\tComment already exists on {issue_key}; skipping."
                )
            else:
                self.run_log.info(
                    f"\tComment already exists on {issue_key} from "
                    f"{latest:%Y-%m-%d}; skipping."
                )
        elif decision is CommentDecision.POST_AS_DUPLICATE and latest is not None:
            days_old = math.floor(age_in_days(latest, now))
            self.run_log.info(
                f"\tComment already exists on {issue_key} from {latest:%Y-%m-%d}; "
                f"creating duplicate because last comment is {days_old} days old."
            )

        return decision, latest

    def comment(self, issue_key: str, account_id: str, message: str) -> CommentOutcome:
        """Post the reminder for ``issue_key`` when the history allows it."""
        decision, latest = self.should_skip_comment(issue_key, message)
        if decision is CommentDecision.SKIP:
            return CommentOutcome(
                issue_key=issue_key, decision=decision, latest_match=latest
            )

        posted = self.source.add_comment(issue_key, account_id, message)
        return CommentOutcome(
            issue_key=issue_key, decision=decision, posted=posted, latest_match=latest
        )
