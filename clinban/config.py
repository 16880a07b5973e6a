"""Project configuration loading.

A project may define a ``.clinban`` TOML file at its root that sets the
active ticket directory, the archive directory, the default ticket type and
whether ``new`` splits its joined arguments into a title. Omitted fields fall
back to defaults; relative paths resolve against the project root.
"""

from __future__ import annotations

import json
import os
import tempfile
import tomllib
from dataclasses import dataclass

CONFIG_FILENAME = ".clinban"
DEFAULT_TICKETS_DIR = "tickets"
DEFAULT_ARCHIVE_DIR = "tickets/archive"
VALID_DEFAULT_TYPES = frozenset({"bug", "task", "feature", "spike"})
KEYS = ("tickets_dir", "archive_dir", "default_type", "split_raw_new")


class ConfigError(Exception):
    """Base class for configuration errors."""


class MalformedConfigError(ConfigError):
    """Raised when .clinban exists but cannot be parsed."""


class UnknownKeyError(ConfigError, KeyError):
    """Raised when a key is not a recognised configuration field."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class InvalidValueError(ConfigError, ValueError):
    """Raised when a value is not valid for its key."""


@dataclass
class Config:
    """Resolved filesystem layout and options for a project."""

    tickets_dir: str
    archive_dir: str
    default_type: str = ""
    split_raw_new: bool = True


@dataclass(frozen=True)
class Entry:
    """One configuration key with its active and built-in default values."""

    key: str
    value: str
    default: str
    is_set: bool


@dataclass
class _RawConfig:
    tickets_dir: str = ""
    archive_dir: str = ""
    default_type: str = ""
    split_raw_new: bool | None = None


def _config_path(root: str | os.PathLike[str]) -> str:
    return os.path.join(os.fspath(root), CONFIG_FILENAME)


def _read_raw(root: str | os.PathLike[str]) -> _RawConfig | None:
    """Return the raw file contents, or None when .clinban is absent."""
    try:
        with open(_config_path(root), "rb") as handle:
            data = handle.read()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise ConfigError(f"config: read .clinban: {exc}") from exc

    try:
        document = tomllib.loads(data.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise MalformedConfigError(f"config: malformed .clinban file: {exc}") from exc

    raw = _RawConfig()
    for key in ("tickets_dir", "archive_dir", "default_type"):
        if key in document:
            value = document[key]
            if not isinstance(value, str):
                raise MalformedConfigError(
                    f"config: malformed .clinban file: {key} must be a string"
                )
            setattr(raw, key, value)
    if "split_raw_new" in document:
        value = document["split_raw_new"]
        if not isinstance(value, bool):
            raise MalformedConfigError(
                "config: malformed .clinban file: split_raw_new must be a boolean"
            )
        raw.split_raw_new = value
    return raw


def _resolve(base: str, path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.normpath(os.path.join(base, path))


def _defaults(root: str) -> Config:
    return Config(
        tickets_dir=os.path.join(root, "tickets"),
        archive_dir=os.path.join(root, "tickets", "archive"),
    )


def load(project_root: str | os.PathLike[str]) -> Config:
    """Read .clinban from project_root and return the resolved configuration.

    A missing file yields defaults. When only tickets_dir is set, the archive
    defaults to tickets_dir/archive. Raises MalformedConfigError on bad TOML.
    """
    root = os.fspath(project_root)
    cfg = _defaults(root)
    raw = _read_raw(root)
    if raw is None:
        return cfg

    if raw.tickets_dir:
        cfg.tickets_dir = _resolve(root, raw.tickets_dir)
        cfg.archive_dir = os.path.join(cfg.tickets_dir, "archive")
    if raw.archive_dir:
        cfg.archive_dir = _resolve(root, raw.archive_dir)
    cfg.default_type = raw.default_type
    if raw.split_raw_new is not None:
        cfg.split_raw_new = raw.split_raw_new
    return cfg


def entries(root: str | os.PathLike[str]) -> list[Entry]:
    """Return every known key with its displayed value, default and set flag."""
    raw = _read_raw(root) or _RawConfig()

    tickets_value = raw.tickets_dir or DEFAULT_TICKETS_DIR
    if raw.archive_dir:
        archive_value = raw.archive_dir
    elif raw.tickets_dir:
        archive_value = raw.tickets_dir + "/archive"
    else:
        archive_value = DEFAULT_ARCHIVE_DIR

    split_set = raw.split_raw_new is not None
    split_value = "true" if raw.split_raw_new is None or raw.split_raw_new else "false"

    return [
        Entry("tickets_dir", tickets_value, DEFAULT_TICKETS_DIR, bool(raw.tickets_dir)),
        Entry("archive_dir", archive_value, DEFAULT_ARCHIVE_DIR, bool(raw.archive_dir)),
        Entry("default_type", raw.default_type, "", bool(raw.default_type)),
        Entry("split_raw_new", split_value, "true", split_set),
    ]


def _validate(key: str, value: str) -> None:
    if key in ("tickets_dir", "archive_dir"):
        if not value:
            raise InvalidValueError(f"config: invalid value: {key} cannot be empty")
    elif key == "default_type":
        if value and value not in VALID_DEFAULT_TYPES:
            raise InvalidValueError(
                "config: invalid value: default_type must be one of "
                f"bug, task, feature, spike; got {json.dumps(value)}"
            )
    elif key == "split_raw_new":
        if value not in ("true", "false"):
            raise InvalidValueError(
                'config: invalid value: split_raw_new must be "true" or "false"; '
                f"got {json.dumps(value)}"
            )
    else:
        raise UnknownKeyError(f"config: unknown key: {json.dumps(key)}")


def _render(raw: _RawConfig) -> str:
    lines = [
        f"{key} = {json.dumps(value, ensure_ascii=False)}\n"
        for key, value in (
            ("tickets_dir", raw.tickets_dir),
            ("archive_dir", raw.archive_dir),
            ("default_type", raw.default_type),
        )
        if value
    ]
    if raw.split_raw_new is not None:
        lines.append(f"split_raw_new = {'true' if raw.split_raw_new else 'false'}\n")
    return "".join(lines)


def set_key(root: str | os.PathLike[str], key: str, value: str) -> None:
    """Validate and store key = value in .clinban, creating the file if needed.

    The file is replaced atomically with mode 0600. Raises UnknownKeyError or
    InvalidValueError for bad input and MalformedConfigError for a bad file.
    """
    _validate(key, value)
    root_path = os.fspath(root)
    raw = _read_raw(root_path) or _RawConfig()
    if key == "split_raw_new":
        raw.split_raw_new = value == "true"
    else:
        setattr(raw, key, value)

    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".clinban-", suffix=".tmp", dir=root_path)
    except OSError as exc:
        raise ConfigError(f"config: set key: create temp: {exc}") from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(_render(raw))
            os.chmod(tmp_path, 0o600)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, _config_path(root_path))
    except OSError as exc:
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        raise ConfigError(f"config: set key: {exc}") from exc