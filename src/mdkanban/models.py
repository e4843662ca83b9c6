"""Data models for markdown boards."""

import re
from dataclasses import dataclass, field
from typing import Any

from mdkanban.errors import NotFound

METADATA_KEYS = ("priority", "project", "assigned", "creator", "tags", "closed")


def slugify(text: str) -> str:
    """Convert a column title to its id.

    "📋 Backlog" → "-backlog", "In Progress" → "in-progress"
    """
    return re.sub(r"[^a-z0-9]+", "-", text.lower())


@dataclass
class Task:
    """A `### TASK-NNN | title` block and everything up to the next heading."""

    id: str
    title: str
    metadata: dict[str, Any] = field(default_factory=dict)
    raw: str = ""
    body: list[str] = field(default_factory=list)

    @property
    def history(self) -> list[str]:
        return self.metadata.get("history", [])


@dataclass
class Column:
    """An emoji-tagged `##` heading and the tasks under it."""

    title: str
    tasks: list[Task] = field(default_factory=list)
    id: str = ""
    # Lines between the header and the first task (hint comment, notes).
    lead: list[str] = field(default_factory=list, repr=False)
    # Original body lines and (id, raw) pairs as parsed, for change detection.
    source: list[str] | None = field(default=None, repr=False, compare=False)
    snapshot: tuple | None = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if not self.id:
            self.id = slugify(self.title)

    def fingerprint(self) -> tuple:
        """(id, raw) pairs of the current tasks, in order."""
        return tuple((task.id, task.raw) for task in self.tasks)

    def is_dirty(self) -> bool:
        """True if tasks were added, removed, reordered or edited since parsing."""
        return self.source is None or self.snapshot != self.fingerprint()


@dataclass
class Document:
    """A parsed board file."""

    columns: list[Column] = field(default_factory=list)
    config: dict[str, str] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)
    text: str = ""
    path: str = ""
    # Highest task number issued; written back to the counter comment on rebuild.
    last_id: int | None = None
    _index: dict[str, Column] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self):
        self.reindex()

    def reindex(self) -> None:
        """Rebuild the task id → column index."""
        self._index = {}
        for column in self.columns:
            for task in column.tasks:
                self._index.setdefault(task.id, column)

    def find_column(self, title: str) -> Column:
        """Find a column by exact title, falling back to its slug id.

        The emoji marker slugs to a leading "-", so "Done", "done" and
        "-done" all find "✅ Done".
        """
        for column in self.columns:
            if column.title == title:
                return column
        wanted = slugify(title).strip("-")
        for column in self.columns:
            if column.id == title or (wanted and column.id.strip("-") == wanted):
                return column
        raise NotFound(f"Column '{title}' not found")

    def find_task(self, task_id: str) -> tuple[Column, int, Task]:
        """Return (column, position, task) for a task id."""
        column = self._index.get(task_id)
        if column is not None:
            for i, task in enumerate(column.tasks):
                if task.id == task_id:
                    return column, i, task
        raise NotFound(f"Task '{task_id}' not found")

    def tasks(self):
        """Iterate (column, task) pairs in file order."""
        for column in self.columns:
            for task in column.tasks:
                yield column, task
