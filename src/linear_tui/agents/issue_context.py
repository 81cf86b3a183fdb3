"""Render an issue (title, description, comments) into agent prompt context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class IssueUser:
    name: str = ""
    display_name: str = ""


@dataclass
class IssueComment:
    body: str = ""
    author: IssueUser = field(default_factory=IssueUser)
    created_at: datetime | None = None


@dataclass
class Issue:
    title: str = ""
    description: str = ""
    comments: list[IssueComment] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Issue:
        """Build an issue from tracker JSON (``displayName`` / ``createdAt`` keys)."""
        comments = data.get("comments") or []
        if isinstance(comments, dict):
            comments = comments.get("nodes") or []
        return cls(
            title=data.get("title") or "",
            description=data.get("description") or "",
            comments=[_comment_from_dict(item) for item in comments if isinstance(item, dict)],
        )


def build_issue_context(issue: Issue) -> str:
    """Render title, description and comments into plain text."""
    lines = [f"Title: {issue.title}"]

    if issue.description:
        lines += ["Description:", issue.description]
    else:
        lines.append("Description: (none)")

    if not issue.comments:
        lines.append("Comments: (none)")
        return "\n".join(lines).strip()

    lines.append("Comments:")
    for index, comment in enumerate(issue.comments):
        lines.append(
            f"- {format_author(comment.author)} at {format_timestamp(comment.created_at)}"
        )
        lines.append(comment.body)
        if index < len(issue.comments) - 1:
            lines.append("")

    return "\n".join(lines).strip()


def format_author(author: IssueUser) -> str:
    return author.display_name or author.name or "Unknown"


def format_timestamp(timestamp: datetime | None) -> str:
    if timestamp is None:
        return "unknown time"
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.isoformat(timespec="seconds").replace("+00:00", "Z")


def _comment_from_dict(data: dict[str, Any]) -> IssueComment:
    author = data.get("author") or data.get("user")
    if not isinstance(author, dict):
        author = {}
    created_at = data.get("createdAt") or data.get("created_at")
    return IssueComment(
        body=data.get("body") or "",
        author=IssueUser(
            name=author.get("name") or "",
            display_name=author.get("displayName") or author.get("display_name") or "",
        ),
        created_at=_parse_timestamp(created_at),
    )


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
