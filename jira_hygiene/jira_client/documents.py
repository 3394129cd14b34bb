"""Atlassian Document Format (ADF) trees for comment bodies.

Jira REST v3 returns comment bodies as nested ADF documents. Only a handful
of node kinds matter here; everything else is kept as an opaque ``other``
node whose children are still walked.
API Reference: https://developer.atlassian.com/cloud/jira/platform/apis/document/structure/
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

COMMENT_MARKER = "#datahygiene"


class NodeKind(str, Enum):
    """Node kinds the hygiene run distinguishes."""

    DOCUMENT = "doc"
    PARAGRAPH = "paragraph"
    TEXT = "text"
    MENTION = "mention"
    OTHER = "other"


class DocNode(BaseModel):
    """A single ADF node and its children."""

    type: str = Field("other", description="ADF node type, e.g. 'paragraph'")
    version: int | None = Field(None, description="Document version (root only)")
    text: str | None = Field(None, description="Text content of text leaves")
    attrs: dict[str, Any] = Field(
        default_factory=dict, description="Node attributes, e.g. mention id"
    )
    content: list["DocNode"] = Field(default_factory=list, description="Children")

    @property
    def kind(self) -> NodeKind:
        try:
            return NodeKind(self.type)
        except ValueError:
            return NodeKind.OTHER

    @classmethod
    def from_payload(cls, payload: Any) -> "DocNode":
        """Build a tree from a decoded JSON body.

        Plain strings (REST v2 style bodies) become a single text leaf.
        Malformed members are dropped rather than rejected.
        """
        if isinstance(payload, str):
            return cls(type=NodeKind.TEXT.value, text=payload)

        if isinstance(payload, list):
            return cls(
                type=NodeKind.DOCUMENT.value,
                content=[cls.from_payload(item) for item in payload],
            )

        if not isinstance(payload, dict):
            return cls(type=NodeKind.OTHER.value)

        node_type = payload.get("type")
        text = payload.get("text")
        attrs = payload.get("attrs")
        version = payload.get("version")
        content = payload.get("content")

        return cls(
            type=node_type if isinstance(node_type, str) else NodeKind.OTHER.value,
            version=version if isinstance(version, int) else None,
            text=text if isinstance(text, str) else None,
            attrs=attrs if isinstance(attrs, dict) else {},
            content=(
                [cls.from_payload(child) for child in content]
                if isinstance(content, list)
                else []
            ),
        )

    def plain_text(self) -> str:
        """Concatenate every piece of text in the tree, in document order.

        Text leaves contribute their text. Mentions (and any other node
        carrying a display ``text`` attribute) contribute that attribute.
        Structure contributes nothing.
        """
        parts: list[str] = []
        self._collect_text(parts)
        return "".join(parts)

    def _collect_text(self, parts: list[str]) -> None:
        if self.kind is NodeKind.TEXT:
            if self.text:
                parts.append(self.text)
        else:
            label = self.attrs.get("text")
            if isinstance(label, str):
                parts.append(label)

        for child in self.content:
            child._collect_text(parts)

    def to_payload(self) -> dict[str, Any]:
        """Serialize back to the JSON shape Jira accepts."""
        payload: dict[str, Any] = {"type": self.type}
        if self.version is not None:
            payload["version"] = self.version
        if self.attrs:
            payload["attrs"] = dict(self.attrs)
        if self.text is not None:
            payload["text"] = self.text
        if self.content:
            payload["content"] = [child.to_payload() for child in self.content]
        return payload


def marked_text(message: str, marker: str = COMMENT_MARKER) -> str:
    """Text every automated reminder carries, used to recognize it later."""
    return f"{message} {marker}"


def reminder_comment(account_id: str, message: str) -> DocNode:
    """Build the reminder comment: a mention of the assignee, then the text."""
    return DocNode(
        type=NodeKind.DOCUMENT.value,
        version=1,
        content=[
            DocNode(
                type=NodeKind.PARAGRAPH.value,
                content=[
                    DocNode(type=NodeKind.MENTION.value, attrs={"id": account_id}),
                    DocNode(type=NodeKind.TEXT.value, text=f" {marked_text(message)}"),
                ],
            )
        ],
    )
