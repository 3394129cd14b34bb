"""Jira client package for API interaction."""

from .client import JiraClient
from .documents import COMMENT_MARKER, DocNode, NodeKind, reminder_comment
from .models import JiraComment, JiraIssue, JiraUser

__all__ = [
    "COMMENT_MARKER",
    "DocNode",
    "JiraClient",
    "JiraComment",
    "JiraIssue",
    "JiraUser",
    "NodeKind",
    "reminder_comment",
]
