"""Ticket schema and Markdown frontmatter parsing.

A ticket is a Markdown document whose first section is YAML frontmatter
holding the schema fields (title, status, type, tags, created, updated). The
remaining Markdown body is kept as freeform content. Business rules such as
workflow transitions and repository-wide ID uniqueness live elsewhere.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import StrEnum
from typing import Any

import yaml

FENCE = "---"
_OPEN_FENCE = FENCE + "\n"
_CLOSE_FENCE_NL = "\n" + FENCE + "\n"
_CLOSE_FENCE_EOF = "\n" + FENCE
_DUMP_WIDTH = 1 << 30
_ZERO_TIME = "0001-01-01T00:00:00Z"


class Status(StrEnum):
    """Workflow state stored in a ticket's frontmatter."""

    BACKLOG = "backlog"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"
    DONE = "done"


class TicketType(StrEnum):
    """Controlled category of work described by a ticket."""

    BUG = "bug"
    TASK = "task"
    FEATURE = "feature"
    SPIKE = "spike"


_STATUS_VALUES = frozenset(s.value for s in Status)
_TYPE_VALUES = frozenset(t.value for t in TicketType)


def valid_status(value: object) -> bool:
    """Report whether value is one of the supported status values."""
    return isinstance(value, str) and value in _STATUS_VALUES


def valid_type(value: object) -> bool:
    """Report whether value is one of the supported ticket types."""
    return isinstance(value, str) and value in _TYPE_VALUES


class TicketParseError(ValueError):
    """Raised when ticket content cannot be decoded."""


class MissingFrontmatterError(TicketParseError):
    """Raised when content lacks a complete --- fenced frontmatter block."""

    def __init__(self, message: str = "missing frontmatter") -> None:
        super().__init__(message)


@dataclass
class Ticket:
    """In-memory representation of a ticket file.

    ``id`` is derived from the filename by the storage layer and is never
    stored in the frontmatter. ``created`` and ``updated`` are ``None`` when
    unset.
    """

    id: str = ""
    status: str = ""
    type: str = ""
    title: str = ""
    tags: list[str] = field(default_factory=list)
    created: datetime | None = None
    updated: datetime | None = None
    body: str = ""


def _as_text(value: Any, name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TicketParseError(f"field {name!r}: cannot decode {type(value).__name__} as a string")


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def _as_time(value: Any, name: str) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return _aware(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            return _aware(datetime.fromisoformat(value.strip()))
        except ValueError as exc:
            raise TicketParseError(f"field {name!r}: {value!r} is not a timestamp") from exc
    raise TicketParseError(f"field {name!r}: cannot decode {type(value).__name__} as a timestamp")


def _as_tags(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TicketParseError("field 'tags': expected a sequence")
    return [_as_text(item, "tags") for item in value]


def parse(content: bytes | str) -> Ticket:
    """Decode a Markdown ticket file into a Ticket.

    Raises MissingFrontmatterError when the opening or closing fence is
    absent and TicketParseError when the frontmatter is malformed. The
    returned ticket always has an empty ``id``.
    """
    text = content.decode("utf-8") if isinstance(content, bytes) else content
    text = text.replace("\r\n", "\n")

    if not text.startswith(_OPEN_FENCE):
        raise MissingFrontmatterError()

    rest = text[len(_OPEN_FENCE):]
    idx = rest.find(_CLOSE_FENCE_NL)
    if idx != -1:
        body = rest[idx + len(_CLOSE_FENCE_NL):]
    elif rest.endswith(_CLOSE_FENCE_EOF):
        idx = len(rest) - len(_CLOSE_FENCE_EOF)
        body = ""
    else:
        raise MissingFrontmatterError()

    try:
        data = yaml.safe_load(rest[:idx])
    except (yaml.YAMLError, ValueError) as exc:
        raise TicketParseError(f"ticket: parse: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise TicketParseError("ticket: parse: frontmatter is not a mapping")

    return Ticket(
        status=_as_text(data.get("status"), "status"),
        type=_as_text(data.get("type"), "type"),
        title=_as_text(data.get("title"), "title"),
        tags=_as_tags(data.get("tags")),
        created=_as_time(data.get("created"), "created"),
        updated=_as_time(data.get("updated"), "updated"),
        body=body,
    )


def _format_time(moment: datetime | None) -> str:
    if moment is None:
        return _ZERO_TIME
    moment = _aware(moment)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _dump_scalar_field(key: str, value: str) -> str:
    return yaml.safe_dump(
        {key: str(value)}, allow_unicode=True, width=_DUMP_WIDTH, sort_keys=False
    )


def marshal(ticket: Ticket) -> bytes:
    """Encode ticket as a Markdown file with fenced YAML frontmatter.

    Tags are always emitted in flow style, so an empty list becomes ``tags: []``.
    """
    tags = [str(tag) for tag in (ticket.tags or [])]
    tags_text = yaml.safe_dump(
        tags, default_flow_style=True, allow_unicode=True, width=_DUMP_WIDTH
    )
    frontmatter = "".join(
        [
            _dump_scalar_field("title", ticket.title),
            _dump_scalar_field("status", ticket.status),
            _dump_scalar_field("type", ticket.type),
            "tags: " + tags_text,
            f"created: {_format_time(ticket.created)}\n",
            f"updated: {_format_time(ticket.updated)}\n",
        ]
    )
    return (_OPEN_FENCE + frontmatter + _OPEN_FENCE + ticket.body).encode("utf-8")