"""Opening ticket files in the user's configured editor.

EDITOR is used when set, with vi as the fallback. The editor runs as a child
process sharing the caller's standard streams; callers read and validate the
file after it exits.
"""

from __future__ import annotations

import os
import signal
import subprocess

_DEFAULT_EDITOR = "vi"
_WAIT_EDITORS = frozenset(
    {"code", "code-insiders", "codium", "cursor", "zed", "subl", "sublime_text", "mate", "gedit"}
)


class EditorError(RuntimeError):
    """Raised when the editor cannot be started or exits unsuccessfully."""


def _needs_wait_flag(name: str, args: list[str]) -> bool:
    if os.path.basename(name) not in _WAIT_EDITORS:
        return False
    return not any(arg in ("--wait", "-w") for arg in args)


def editor_command(path: str | os.PathLike[str]) -> list[str]:
    """Return the argument vector that opens path in the configured editor.

    GUI editors that return immediately get ``--wait`` appended unless a wait
    flag is already present.
    """
    editor = os.environ.get("EDITOR", "") or _DEFAULT_EDITOR
    parts = editor.split()
    if not parts:
        raise EditorError("editor command is empty")
    name, args = parts[0], parts[1:]
    if _needs_wait_flag(name, args):
        args.append("--wait")
    return [name, *args, os.fspath(path)]


def _describe_start_failure(name: str, exc: OSError) -> str:
    if isinstance(exc, FileNotFoundError) and os.sep not in name:
        return f'exec: "{name}": executable file not found in $PATH'
    return str(exc)


def _describe_exit(returncode: int) -> str:
    if returncode < 0:
        return f"signal: {signal.strsignal(-returncode) or -returncode}"
    return f"exit status {returncode}"


def open_editor(path: str | os.PathLike[str]) -> None:
    """Open path in the configured editor and wait for it to exit."""
    argv = editor_command(path)
    name = argv[0]
    try:
        completed = subprocess.run(argv, check=False)
    except OSError as exc:
        raise EditorError(
            f'editor "{name}" exited with error: {_describe_start_failure(name, exc)}'
        ) from exc
    if completed.returncode != 0:
        raise EditorError(
            f'editor "{name}" exited with error: {_describe_exit(completed.returncode)}'
        )