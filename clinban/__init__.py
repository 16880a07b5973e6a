"""Library for kanban tickets stored as Markdown files with YAML frontmatter."""

__version__ = "0.1.0"
__all__ = ["config", "editor", "fsm", "lint", "slug", "store", "ticket"]