"""Aggregation, reminder comments, templating and run orchestration."""

from .aggregator import AssigneeBucket, FilterBucket, FilterResult, IssueEntry, aggregate
from .freshness import CommentDecision, CommentOutcome, ReminderCommenter, decide
from .orchestrator import HygieneRun, RunStage, RunSummary, format_run_summary
from .templates import ContentMode, EmailTemplateBuilder

__all__ = [
    "AssigneeBucket",
    "CommentDecision",
    "CommentOutcome",
    "ContentMode",
    "EmailTemplateBuilder",
    "FilterBucket",
    "FilterResult",
    "HygieneRun",
    "IssueEntry",
    "ReminderCommenter",
    "RunStage",
    "RunSummary",
    "aggregate",
    "decide",
    "format_run_summary",
]
