"""Filesystem-backed storage for tickets.

A Store knows the active ticket directory and the archive directory. It scans
filenames for IDs, locates tickets by ID, reads and writes Markdown ticket
files, lists active and archived records and moves files between the two
directories.

Writes go to a temporary file in the target directory that is then renamed
into place, so readers never see a partially written file. Workflow and
schema rules are enforced elsewhere.
"""

from __future__ import annotations

import os
import re
import tempfile
from dataclasses import dataclass

from clinban.config import Config
from clinban.ticket import Ticket, TicketParseError, marshal, parse

_ID_PATTERN = re.compile(r"([0-9]{4})-.*\.md\Z")
_NUMERIC = re.compile(r"[+-]?[0-9]+")


class StoreError(Exception):
    """Raised when a storage operation fails."""


class TicketNotFoundError(StoreError, LookupError):
    """Raised when no active or archived ticket file matches an ID."""

    def __init__(self, ticket_id: str = "") -> None:
        self.ticket_id = ticket_id
        super().__init__("ticket not found")


@dataclass(frozen=True)
class Record:
    """A parsed ticket together with where it was read from."""

    ticket: Ticket
    path: str
    in_archive: bool


def _managed_entries(directory: str, context: str) -> list[tuple[str, str]]:
    """Return (filename, id prefix) pairs of managed ticket files, sorted by name.

    A missing directory counts as empty.
    """
    try:
        with os.scandir(directory) as it:
            names = sorted(entry.name for entry in it if not entry.is_dir(follow_symlinks=False))
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise StoreError(f"store: {context} {directory}: {exc}") from exc
    return [(name, match.group(1)) for name in names if (match := _ID_PATTERN.match(name))]


def _normalise_id(ticket_id: str) -> str:
    if _NUMERIC.fullmatch(ticket_id):
        return f"{int(ticket_id):04d}"
    return ticket_id


@dataclass
class Store:
    """Manages ticket files on disk: locating, reading, writing, listing and moving."""

    tickets_dir: str
    archive_dir: str

    def __post_init__(self) -> None:
        self.tickets_dir = os.fspath(self.tickets_dir)
        self.archive_dir = os.fspath(self.archive_dir)

    def _directories(self) -> tuple[str, str]:
        return (self.tickets_dir, self.archive_dir)

    def next_id(self) -> int:
        """Return one more than the highest ID found in active or archived filenames."""
        highest = 0
        for directory in self._directories():
            for _name, prefix in _managed_entries(directory, "scan"):
                highest = max(highest, int(prefix))
        return highest + 1

    def find_by_id(self, ticket_id: str) -> tuple[str, bool]:
        """Return (path, in_archive) of the first file matching ticket_id.

        Active tickets are searched before archived ones. The ID is normalised
        to four digits, so "5" and "0005" are equivalent. Raises
        TicketNotFoundError when nothing matches.
        """
        wanted = _normalise_id(ticket_id)
        for directory in self._directories():
            for name, prefix in _managed_entries(directory, f"find {wanted}"):
                if prefix == wanted:
                    return os.path.join(directory, name), directory == self.archive_dir
        raise TicketNotFoundError(wanted)

    def find_all_by_id(self, ticket_id: str) -> list[str]:
        """Return every active and archived path whose ID prefix matches ticket_id."""
        wanted = _normalise_id(ticket_id)
        return [
            os.path.join(directory, name)
            for directory in self._directories()
            for name, prefix in _managed_entries(directory, f"find all {wanted}")
            if prefix == wanted
        ]

    def all_ids(self) -> list[str]:
        """Return the zero-padded ID prefix of every active and archived ticket file."""
        return [
            prefix
            for directory in self._directories()
            for _name, prefix in _managed_entries(directory, "scan ids")
        ]

    def _list_dir(self, directory: str, in_archive: bool) -> list[Record]:
        records = []
        for name, _prefix in _managed_entries(directory, "list"):
            full = os.path.join(directory, name)
            try:
                ticket = self.read_ticket(full)
            except StoreError as exc:
                raise StoreError(f"store: list: read {name}: {exc}") from exc
            records.append(Record(ticket=ticket, path=full, in_archive=in_archive))
        return records

    def list_active(self) -> list[Record]:
        """Return the managed tickets in the active directory."""
        return self._list_dir(self.tickets_dir, False)

    def list_archive(self) -> list[Record]:
        """Return the managed tickets in the archive directory."""
        return self._list_dir(self.archive_dir, True)

    def read_ticket(self, path: str | os.PathLike[str]) -> Ticket:
        """Read and parse the ticket at path, taking its ID from the filename."""
        path = os.fspath(path)
        try:
            with open(path, "rb") as handle:
                content = handle.read()
        except OSError as exc:
            raise StoreError(f"store: read ticket {path}: {exc}") from exc
        try:
            ticket = parse(content)
        except (TicketParseError, UnicodeDecodeError) as exc:
            raise StoreError(f"store: parse ticket {path}: {exc}") from exc
        base = os.path.basename(path)
        match = _ID_PATTERN.match(base)
        if match is None:
            raise StoreError(f"store: read ticket: filename {base!r} is not a managed ticket")
        ticket.id = match.group(1)
        return ticket

    def write_ticket(self, ticket: Ticket, path: str | os.PathLike[str]) -> None:
        """Serialise ticket and atomically replace the file at path.

        The ticket is not modified; callers set fields such as ``updated``.
        """
        path = os.fspath(path)
        data = marshal(ticket)
        directory = os.path.dirname(path) or "."
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".clinban-", suffix=".tmp", dir=directory)
        except OSError as exc:
            raise StoreError(f"store: write ticket: create temp: {exc}") from exc
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                os.chmod(tmp_path, 0o600)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            try:
                os.remove(tmp_path)
            except OSError:
                pass
            raise StoreError(f"store: write ticket: {exc}") from exc
        try:
            dir_fd = os.open(directory, os.O_RDONLY)
        except OSError:
            return
        try:
            os.fsync(dir_fd)
        except OSError:
            pass
        finally:
            os.close(dir_fd)

    def ticket_path(self, ticket_id: int, slug: str) -> str:
        """Return the active path ``<id>-<slug>.md`` with a four-digit ID."""
        return os.path.join(self.tickets_dir, f"{ticket_id:04d}-{slug}.md")

    def active_path(self, archive_path: str | os.PathLike[str]) -> str:
        """Return the active-directory path with archive_path's filename."""
        return os.path.join(self.tickets_dir, os.path.basename(os.fspath(archive_path)))

    def _move(self, path: str, target_dir: str, context: str) -> str:
        dest = os.path.join(target_dir, os.path.basename(path))
        try:
            os.link(path, dest)
        except FileExistsError as exc:
            raise StoreError(
                f"store: {context}: destination already exists: {os.path.basename(dest)}"
            ) from exc
        except OSError as exc:
            raise StoreError(f"store: {context}: link: {exc}") from exc
        try:
            os.remove(path)
        except OSError as exc:
            raise StoreError(f"store: {context}: remove: {exc}") from exc
        return dest

    def move_to_archive(self, path: str | os.PathLike[str]) -> str:
        """Move path into the archive directory, creating it, and return the new path.

        An existing file with the same name is never overwritten.
        """
        try:
            os.makedirs(self.archive_dir, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"store: move to archive: mkdir: {exc}") from exc
        return self._move(os.fspath(path), self.archive_dir, "move to archive")

    def move_to_active(self, path: str | os.PathLike[str]) -> str:
        """Move path into the active directory and return the new path.

        An existing file with the same name is never overwritten.
        """
        return self._move(os.fspath(path), self.tickets_dir, "move to active")

    def remove(self, path: str | os.PathLike[str]) -> None:
        """Delete the ticket file at path."""
        path = os.fspath(path)
        try:
            os.remove(path)
        except OSError as exc:
            raise StoreError(f"store: remove {os.path.basename(path)}: {exc}") from exc


def from_config(config: Config) -> Store:
    """Build a Store from a resolved configuration."""
    return Store(tickets_dir=config.tickets_dir, archive_dir=config.archive_dir)