"""Render digest subjects and bodies from token templates.

Supported tokens (matched case-insensitively):

- ``{Assignee}``: display name, or email when there is none
- ``{IssueCount}``: number of issues in the digest
- ``{Filters}``: the per-filter issue listing
"""

import html
import re
from enum import Enum

from ..utils.urls import filter_url
from .aggregator import AssigneeBucket, FilterBucket

ASSIGNEE_TOKEN = "{Assignee}"
ISSUE_COUNT_TOKEN = "{IssueCount}"
FILTERS_TOKEN = "{Filters}"


class ContentMode(str, Enum):
    PLAIN_TEXT = "text/plain"
    HTML = "text/html"


def replace_token(text: str, token: str, value: str) -> str:
    """Replace every case-insensitive occurrence of ``token`` with ``value``."""
    return re.sub(re.escape(token), lambda _: value, text, flags=re.IGNORECASE)


def has_token(text: str, token: str) -> bool:
    return token.casefold() in text.casefold()


class EmailTemplateBuilder:
    """Renders templates for one run's content mode and footer."""

    def __init__(
        self,
        base_url: str,
        mode: ContentMode = ContentMode.PLAIN_TEXT,
        footer_html: str = "",
        footer_text: str = "",
    ) -> None:
        self.base_url = base_url
        self.mode = mode
        self.footer_html = footer_html
        self.footer_text = footer_text

    @property
    def separator(self) -> str:
        return "<br/><br/>" if self.mode is ContentMode.HTML else "\n\n"

    @property
    def footer(self) -> str:
        return self.footer_html if self.mode is ContentMode.HTML else self.footer_text

    def render(
        self,
        template: str,
        bucket: AssigneeBucket,
        issue_count: int,
        append_filters_when_missing: bool = False,
        include_footer: bool = False,
    ) -> str:
        """Resolve tokens in ``template`` for one assignee.

        Args:
            template: Subject or body template
            bucket: The assignee's digest
            issue_count: Value for ``{IssueCount}``
            append_filters_when_missing: Append the filters listing when the
                template has no ``{Filters}`` token
            include_footer: Append the mode's footer

        Returns:
            Rendered text
        """
        resolved = replace_token(template, ASSIGNEE_TOKEN, bucket.name)
        resolved = replace_token(resolved, ISSUE_COUNT_TOKEN, str(issue_count))

        filters_block = self.render_filters(bucket)
        if has_token(resolved, FILTERS_TOKEN):
            resolved = replace_token(resolved, FILTERS_TOKEN, filters_block)
        elif append_filters_when_missing:
            resolved = f"{resolved}{self.separator}{filters_block}"

        if include_footer:
            resolved = f"{resolved}{self.separator}{self.footer}"

        return resolved

    def render_filters(self, bucket: AssigneeBucket) -> str:
        """List the bucket's issues per filter, filters ordered by name."""
        lines: list[str] = []
        ordered = sorted(
            bucket.filters.values(), key=lambda item: item.filter_name.casefold()
        )
        for filter_bucket in ordered:
            if self.mode is ContentMode.HTML:
                lines.extend(self._html_filter_lines(filter_bucket))
            else:
                lines.extend(self._text_filter_lines(filter_bucket))

        return "\n".join(lines).rstrip()

    def _html_filter_lines(self, filter_bucket: FilterBucket) -> list[str]:
        link = html.escape(
            filter_url(self.base_url, filter_bucket.filter_id), quote=True
        )
        name = html.escape(filter_bucket.filter_name)
        lines = [f'<a href="{link}">{name} ({len(filter_bucket.issues)})</a><br/>']
        if filter_bucket.description.strip():
            lines.append(
                f"<div><em>{html.escape(filter_bucket.description)}</em></div><br/>"
            )
        lines.append("<ul>")
        for entry in filter_bucket.issues:
            href = html.escape(entry.issue_url, quote=True)
            lines.append(
                f'<li><a href="{href}">{html.escape(entry.key)}</a>: '
                f"{html.escape(entry.summary)}</li>"
            )
        lines.extend(["</ul>", "<br/>"])
        return lines

    def _text_filter_lines(self, filter_bucket: FilterBucket) -> list[str]:
        link = filter_url(self.base_url, filter_bucket.filter_id)
        lines = [
            f"Filter: {filter_bucket.filter_name} ({filter_bucket.filter_id}) "
            f"- {len(filter_bucket.issues)} issues {link}"
        ]
        if filter_bucket.description.strip():
            lines.append(f"Description: {filter_bucket.description}")
        for entry in filter_bucket.issues:
            lines.append(f"- {entry.key}: {entry.summary} {entry.issue_url}")
        lines.append("")
        return lines
