"""Markdown-native kanban board engine."""

from mdkanban.board import (
    approve_task,
    create_task,
    delete_task,
    move_task,
    reject_task,
    review_tasks,
    update_task,
)
from mdkanban.engine import (
    load,
    load_and_parse,
    mutate_under_lock,
    save_document,
    serialize_for_display,
)
from mdkanban.errors import KanbanError, LockTimeout, MalformedSentinel, NotFound
from mdkanban.history import append_history, ensure_closed_field
from mdkanban.ids import build_display_id, next_id, normalize_id, stamp_id
from mdkanban.locks import DocumentLocks
from mdkanban.models import Column, Document, Task
from mdkanban.parser import parse
from mdkanban.writer import rebuild

__all__ = [
    "Column",
    "Document",
    "DocumentLocks",
    "KanbanError",
    "LockTimeout",
    "MalformedSentinel",
    "NotFound",
    "Task",
    "append_history",
    "approve_task",
    "build_display_id",
    "create_task",
    "delete_task",
    "ensure_closed_field",
    "load",
    "load_and_parse",
    "move_task",
    "mutate_under_lock",
    "next_id",
    "normalize_id",
    "parse",
    "rebuild",
    "reject_task",
    "review_tasks",
    "save_document",
    "serialize_for_display",
    "stamp_id",
    "update_task",
]
