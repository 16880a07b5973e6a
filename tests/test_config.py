import os
import stat

import pytest

from clinban.config import (
    Config,
    ConfigError,
    InvalidValueError,
    MalformedConfigError,
    UnknownKeyError,
    entries,
    load,
    set_key,
)


def write_config(directory, content):
    (directory / ".clinban").write_text(content, encoding="utf-8")


def by_key(items):
    return {e.key: e for e in items}


def test_load_absent_file(tmp_path):
    root = str(tmp_path)
    cfg = load(root)
    assert cfg.tickets_dir == os.path.join(root, "tickets")
    assert cfg.archive_dir == os.path.join(root, "tickets", "archive")
    assert cfg.default_type == ""
    assert cfg.split_raw_new is True


def test_load_malformed(tmp_path):
    write_config(tmp_path, "this is not valid toml = [ unclosed bracket")
    with pytest.raises(MalformedConfigError):
        load(tmp_path)


def test_load_malformed_is_config_error(tmp_path):
    write_config(tmp_path, "[[broken")
    with pytest.raises(ConfigError):
        load(tmp_path)


def test_load_full_config(tmp_path):
    write_config(tmp_path, 'tickets_dir = "tasks"\narchive_dir = "tasks/archive"\n')
    cfg = load(tmp_path)
    assert cfg.tickets_dir == os.path.join(str(tmp_path), "tasks")
    assert cfg.archive_dir == os.path.join(str(tmp_path), "tasks", "archive")


def test_load_tickets_dir_only(tmp_path):
    write_config(tmp_path, 'tickets_dir = "tasks"\n')
    cfg = load(tmp_path)
    tickets = os.path.join(str(tmp_path), "tasks")
    assert cfg.tickets_dir == tickets
    assert cfg.archive_dir == os.path.join(tickets, "archive")


def test_load_archive_dir_only(tmp_path):
    write_config(tmp_path, 'archive_dir = "custom/archive"\n')
    cfg = load(tmp_path)
    assert cfg.tickets_dir == os.path.join(str(tmp_path), "tickets")
    assert cfg.archive_dir == os.path.join(str(tmp_path), "custom", "archive")


def test_load_empty_file(tmp_path):
    write_config(tmp_path, "")
    cfg = load(tmp_path)
    assert cfg == Config(
        tickets_dir=os.path.join(str(tmp_path), "tickets"),
        archive_dir=os.path.join(str(tmp_path), "tickets", "archive"),
        default_type="",
        split_raw_new=True,
    )


def test_load_default_type_set(tmp_path):
    write_config(tmp_path, 'default_type = "feature"\n')
    assert load(tmp_path).default_type == "feature"


def test_load_default_type_absent(tmp_path):
    write_config(tmp_path, 'tickets_dir = "tickets"\n')
    assert load(tmp_path).default_type == ""


def test_load_absolute_tickets_dir(tmp_path):
    target = os.path.join(str(tmp_path), "custom-abs")
    write_config(tmp_path, f'tickets_dir = "{target}"\n')
    assert load(tmp_path).tickets_dir == target


def test_load_wrong_value_type_is_malformed(tmp_path):
    write_config(tmp_path, "tickets_dir = 5\n")
    with pytest.raises(MalformedConfigError):
        load(tmp_path)


@pytest.mark.parametrize(
    "content, expected",
    [
        ('tickets_dir = "tickets"\n', True),
        ("split_raw_new = false\n", False),
        ("split_raw_new = true\n", True),
    ],
)
def test_load_split_raw_new(tmp_path, content, expected):
    write_config(tmp_path, content)
    assert load(tmp_path).split_raw_new is expected


def test_entries_no_config(tmp_path):
    items = entries(tmp_path)
    assert [e.key for e in items] == [
        "tickets_dir",
        "archive_dir",
        "default_type",
        "split_raw_new",
    ]
    keyed = by_key(items)
    assert not any(e.is_set for e in items)
    assert keyed["tickets_dir"].default == "tickets"
    assert keyed["tickets_dir"].value == "tickets"
    assert keyed["archive_dir"].default == "tickets/archive"
    assert keyed["default_type"].default == ""


def test_entries_partial_config(tmp_path):
    write_config(tmp_path, 'tickets_dir = "mytickets"\n')
    keyed = by_key(entries(tmp_path))
    assert keyed["tickets_dir"].is_set is True
    assert keyed["tickets_dir"].value == "mytickets"
    assert keyed["archive_dir"].is_set is False
    assert keyed["archive_dir"].value == "mytickets/archive"
    assert keyed["default_type"].is_set is False


def test_entries_full_config(tmp_path):
    write_config(
        tmp_path,
        'tickets_dir = "work"\narchive_dir = "work/done"\ndefault_type = "bug"\n',
    )
    keyed = by_key(entries(tmp_path))
    for key in ("tickets_dir", "archive_dir", "default_type"):
        assert keyed[key].is_set is True
    assert keyed["default_type"].value == "bug"
    assert keyed["archive_dir"].value == "work/done"


def test_entries_malformed(tmp_path):
    write_config(tmp_path, "[[broken")
    with pytest.raises(MalformedConfigError):
        entries(tmp_path)


def test_entries_split_raw_new_unset(tmp_path):
    entry = by_key(entries(tmp_path))["split_raw_new"]
    assert entry.is_set is False
    assert entry.default == "true"
    assert entry.value == "true"


def test_entries_split_raw_new_false(tmp_path):
    write_config(tmp_path, "split_raw_new = false\n")
    entry = by_key(entries(tmp_path))["split_raw_new"]
    assert entry.is_set is True
    assert entry.value == "false"


def test_set_key_creates_file(tmp_path):
    set_key(tmp_path, "tickets_dir", "work")
    assert (tmp_path / ".clinban").exists()
    assert load(tmp_path).tickets_dir == os.path.join(str(tmp_path), "work")


def test_set_key_updates_and_preserves(tmp_path):
    write_config(tmp_path, 'tickets_dir = "original"\n')
    set_key(tmp_path, "archive_dir", "custom/archive")
    cfg = load(tmp_path)
    assert cfg.archive_dir == os.path.join(str(tmp_path), "custom", "archive")
    assert cfg.tickets_dir == os.path.join(str(tmp_path), "original")


def test_set_key_default_type(tmp_path):
    set_key(tmp_path, "default_type", "feature")
    assert load(tmp_path).default_type == "feature"


def test_set_key_unknown_key(tmp_path):
    with pytest.raises(UnknownKeyError):
        set_key(tmp_path, "unknown_field", "value")
    assert not (tmp_path / ".clinban").exists()


def test_set_key_invalid_default_type(tmp_path):
    with pytest.raises(InvalidValueError):
        set_key(tmp_path, "default_type", "notatype")


def test_set_key_empty_tickets_dir(tmp_path):
    with pytest.raises(InvalidValueError):
        set_key(tmp_path, "tickets_dir", "")


def test_set_key_empty_default_type_unsets(tmp_path):
    write_config(tmp_path, 'default_type = "task"\n')
    set_key(tmp_path, "default_type", "")
    assert load(tmp_path).default_type == ""


def test_set_key_file_mode(tmp_path):
    set_key(tmp_path, "tickets_dir", "work")
    mode = stat.S_IMODE(os.stat(tmp_path / ".clinban").st_mode)
    assert mode == 0o600


def test_set_key_leaves_no_temp_files(tmp_path):
    set_key(tmp_path, "tickets_dir", "work")
    assert sorted(p.name for p in tmp_path.iterdir()) == [".clinban"]


def test_set_key_written_content(tmp_path):
    set_key(tmp_path, "tickets_dir", "work")
    set_key(tmp_path, "split_raw_new", "false")
    content = (tmp_path / ".clinban").read_text(encoding="utf-8")
    assert content == 'tickets_dir = "work"\nsplit_raw_new = false\n'


@pytest.mark.parametrize("value, expected", [("true", True), ("false", False)])
def test_set_key_split_raw_new_values(tmp_path, value, expected):
    set_key(tmp_path, "split_raw_new", value)
    assert load(tmp_path).split_raw_new is expected


def test_set_key_split_raw_new_invalid(tmp_path):
    with pytest.raises(InvalidValueError):
        set_key(tmp_path, "split_raw_new", "maybe")


def test_set_key_malformed_existing(tmp_path):
    write_config(tmp_path, "[[broken")
    with pytest.raises(MalformedConfigError):
        set_key(tmp_path, "tickets_dir", "work")