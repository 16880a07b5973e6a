"""Conversion of ticket titles into stable filename slugs."""

from __future__ import annotations

_MAX_TOKENS = 5
_ALLOWED = frozenset("abcdefghijklmnopqrstuvwxyz0123456789")
_FALLBACK = "ticket"


def slugify(title: str) -> str:
    """Convert title into a filesystem-safe slug.

    Up to five non-empty tokens are kept, each lowercased and stripped to
    ASCII letters and digits, then joined with hyphens. Tokens that become
    empty are skipped and do not count toward the limit. An empty result
    falls back to ``"ticket"``.
    """
    parts: list[str] = []
    for token in title.split():
        if len(parts) == _MAX_TOKENS:
            break
        cleaned = "".join(ch for ch in token.lower() if ch in _ALLOWED)
        if cleaned:
            parts.append(cleaned)
    return "-".join(parts) or _FALLBACK