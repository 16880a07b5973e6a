# clinban

clinban is a library for keeping a project's kanban board as plain Markdown
files in the repository. Each ticket is one file named `NNNN-some-slug.md`.
The file starts with a YAML frontmatter block and has a free-form Markdown
body after it:

```markdown
---
title: Fix login timeout on staging
status: in-progress
type: bug
tags: []
created: 2026-05-18T14:30:00Z
updated: 2026-05-18T15:00:00Z
---

## Details
```

The ticket ID is not stored in the frontmatter. It comes from the four-digit
prefix of the filename.

## Installation

```
pip install clinban
```

To run the test suite, install `clinban[test]` and run `pytest`.

## Modules

- `clinban.ticket` holds the ticket schema: the `Status` and `TicketType`
  enums, the `Ticket` dataclass and the checks `valid_status(value)` and
  `valid_type(value)`. `parse(content)` reads a ticket file from bytes or text
  and `marshal(ticket)` returns the file as bytes. `parse` raises
  `MissingFrontmatterError` when the `---` fences are missing and
  `TicketParseError` when the YAML is malformed. CRLF line endings are
  accepted, and so is a closing fence with no newline after it. `parse` always
  leaves `Ticket.id` empty.
- `clinban.slug` provides `slugify(title)`. It builds a filename slug from up
  to five words of the title, each lowercased and stripped to ASCII letters and
  digits. When no such word is left, the slug is `"ticket"`.
- `clinban.fsm` holds the workflow. `validate_transition(from_status,
  to_status)` raises `TransitionError` for any move the workflow does not
  allow, self-moves included, and the message lists the allowed targets. The
  allowed moves are backlog → in-progress/blocked, in-progress → blocked/done,
  blocked → in-progress and done → backlog. `next_status(from_status)` gives
  the next forward state, or `None` for done and unknown states.
- `clinban.lint` provides `lint(ticket, filename, all_ids)`. It returns a list
  of `LintError` values for missing fields, unset timestamps, unknown status or
  type values, empty tags and IDs that occur more than once in `all_ids`. An
  empty list means the ticket is valid. `str()` of a `LintError` reads
  `0042-fix-login-timeout.md: field 'type': <message>`.
- `clinban.config` reads the `.clinban` TOML file at the project root.
  `load(project_root)` returns a `Config` with resolved paths.
  `entries(root)` returns an `Entry` for every key with its current value, its
  default and whether it is set. `set_key(root, key, value)` validates a key
  and rewrites the file atomically with mode 0600. Errors derive from
  `ConfigError`: `MalformedConfigError`, `UnknownKeyError` and
  `InvalidValueError`.
- `clinban.store` provides `Store`, built directly or with
  `from_config(config)`. It manages ticket files in the active directory and
  the archive directory: `next_id()`, `find_by_id()`, `find_all_by_id()`,
  `all_ids()`, `list_active()` and `list_archive()` (which return `Record`
  values), `read_ticket()`, `write_ticket()` (atomic), `ticket_path()`,
  `active_path()`, `move_to_archive()`, `move_to_active()` and `remove()`.
  Moves never overwrite an existing file. Failures raise `StoreError`, and a
  missing ID raises `TicketNotFoundError`.
- `clinban.editor` provides `open_editor(path)`. It runs `$EDITOR`, or `vi`
  when `$EDITOR` is not set, waits for it to exit and raises `EditorError` on
  failure. `editor_command(path)` returns the argument list it would run. GUI
  editors such as `code` or `subl` get `--wait` added.

## Example

```python
import os
from datetime import datetime, timezone

from clinban import config, lint, slug, store, ticket

cfg = config.load(".")
repo = store.from_config(cfg)
os.makedirs(repo.tickets_dir, exist_ok=True)

now = datetime.now(timezone.utc).replace(microsecond=0)
new_id = repo.next_id()
tk = ticket.Ticket(
    id=f"{new_id:04d}",
    status=ticket.Status.BACKLOG,
    type=ticket.TicketType.TASK,
    title="Fix login timeout on staging",
    created=now,
    updated=now,
)
path = repo.ticket_path(new_id, slug.slugify(tk.title))
problems = lint.lint(tk, os.path.basename(path), [*repo.all_ids(), tk.id])
if not problems:
    repo.write_ticket(tk, path)
```

## Configuration

`.clinban` may set these keys:

| key             | default           |
|-----------------|-------------------|
| `tickets_dir`   | `tickets`         |
| `archive_dir`   | `tickets/archive` |
| `default_type`  | (unset)           |
| `split_raw_new` | `true`            |

Relative paths are resolved against the project root. When only
`tickets_dir` is set, the archive directory defaults to `<tickets_dir>/archive`.

## What this package does not do

clinban is a library only. It installs no command-line program, so there is
nothing to run to create, move or list tickets from a shell; those steps are
made by calling the functions above. It also has no template for new tickets:
to start a ticket in an editor, write the file yourself (for example with
`marshal`) and then call `open_editor`.