"""Schema validation for parsed tickets.

Linting works on an already parsed ticket: syntax and frontmatter decoding
errors belong to the ticket module. The rules here cover required fields,
legal status and type values, timestamp presence, tag contents and
repository-wide ID uniqueness. Callers supply the filename and the known IDs.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from clinban.ticket import Ticket, valid_status, valid_type

_ZERO_MOMENT = datetime(1, 1, 1, tzinfo=timezone.utc)
_REQUIRED = "required field missing"
_ZERO_TIMESTAMP = "zero timestamp; value was not parseable as RFC3339"


@dataclass(frozen=True)
class LintError:
    """A single schema violation found in a ticket file."""

    file: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.file}: field '{self.field}': {self.message}"


def _quote(value: str) -> str:
    return json.dumps(str(value), ensure_ascii=False)


def _is_zero_time(moment: datetime | None) -> bool:
    if moment is None:
        return True
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    try:
        return moment == _ZERO_MOMENT
    except OverflowError:
        return False


def _required_fields(ticket: Ticket, filename: str, _ids: Sequence[str]) -> list[LintError]:
    errors = [
        LintError(filename, name, _REQUIRED)
        for name, value in (
            ("id", ticket.id),
            ("status", ticket.status),
            ("title", ticket.title),
            ("type", ticket.type),
        )
        if not value
    ]
    errors.extend(
        LintError(filename, name, _ZERO_TIMESTAMP)
        for name, value in (("created", ticket.created), ("updated", ticket.updated))
        if _is_zero_time(value)
    )
    return errors


def _valid_status(ticket: Ticket, filename: str, _ids: Sequence[str]) -> list[LintError]:
    if not ticket.status or valid_status(ticket.status):
        return []
    return [
        LintError(
            filename,
            "status",
            f"invalid value {_quote(ticket.status)}; "
            "must be one of: backlog, in-progress, blocked, done",
        )
    ]


def _valid_type(ticket: Ticket, filename: str, _ids: Sequence[str]) -> list[LintError]:
    if not ticket.type or valid_type(ticket.type):
        return []
    return [
        LintError(
            filename,
            "type",
            f"invalid value {_quote(ticket.type)}; must be one of: bug, task, feature, spike",
        )
    ]


def _tags_non_empty(ticket: Ticket, filename: str, _ids: Sequence[str]) -> list[LintError]:
    for index, tag in enumerate(ticket.tags or []):
        if not str(tag).strip():
            return [LintError(filename, "tags", f"element {index} is an empty string")]
    return []


def _id_unique(ticket: Ticket, filename: str, ids: Sequence[str]) -> list[LintError]:
    count = sum(1 for known in ids if known == ticket.id)
    if count > 1:
        return [
            LintError(
                filename,
                "id",
                f"id {_quote(ticket.id)} is not unique; "
                f"found {count} occurrences across active and archive",
            )
        ]
    return []


_RULES: tuple[Callable[[Ticket, str, Sequence[str]], list[LintError]], ...] = (
    _required_fields,
    _valid_status,
    _valid_type,
    _tags_non_empty,
    _id_unique,
)


def lint(ticket: Ticket, filename: str, all_ids: Iterable[str]) -> list[LintError]:
    """Run every schema rule against ticket and return all violations.

    ``filename`` is the base name used in messages; ``all_ids`` holds every
    ID known across active and archived tickets. The ticket's ``id`` must be
    set beforehand. An empty list means the ticket is valid.
    """
    ids = list(all_ids)
    return [error for rule in _RULES for error in rule(ticket, filename, ids)]