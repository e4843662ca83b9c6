"""Load, mutate and save board files.

Every write goes through mutate_under_lock: lock the path, read, parse,
apply the change to the Document, rebuild the text, write it in one go,
unlock. Reads need no lock.
"""

import asyncio
import inspect
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable

from mdkanban.board import (
    approve_task,
    create_task,
    delete_task,
    move_task,
    reject_task,
    update_task,
)
from mdkanban.git import Settings, commit_file, read_settings
from mdkanban.ids import build_display_id
from mdkanban.locks import DocumentLocks, default_locks
from mdkanban.models import Document, Task
from mdkanban.parser import parse
from mdkanban.writer import rebuild

logger = logging.getLogger(__name__)

_UNSET = object()


def read_text(path: str | Path) -> str:
    # newline="" keeps CRLF boards byte-identical
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def load_and_parse(path: str | Path) -> Document:
    """Read and parse a board file. A snapshot; takes no lock."""
    doc = parse(read_text(path))
    doc.path = str(path)
    return doc


async def load(path: str | Path) -> Document:
    """Async wrapper for load_and_parse."""
    return await asyncio.to_thread(load_and_parse, path)


def save_document(path: str | Path, text: str) -> None:
    """Write text to path in one step.

    The text goes to a temporary file in the same directory which then
    replaces the target, so a failed write leaves the old file intact.
    """
    path = Path(path)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        if path.exists():
            os.chmod(tmp, path.stat().st_mode & 0o777)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


async def mutate_under_lock(
    path: str | Path,
    fn: Callable[[Document, str], Any],
    *,
    timeout: Any = _UNSET,
    locks: DocumentLocks | None = None,
    message: str | None = None,
    settings: Settings | None = None,
) -> Document:
    """Apply fn to the board at path as one serialized read-modify-write.

    fn(document, text) mutates the document in place. It may be a coroutine
    function, and may return a string to use as the base text for the
    rebuild instead of text. Returns the document parsed from what was
    written. Exceptions from fn abort the cycle before anything is written.
    """
    locks = locks or default_locks
    if settings is None:
        settings = await asyncio.to_thread(read_settings, path)
    if timeout is _UNSET:
        timeout = settings.lock_timeout

    async with locks.hold(path, timeout=timeout):
        text = await asyncio.to_thread(read_text, path)
        doc = parse(text)
        doc.path = str(path)

        result = fn(doc, text)
        if inspect.isawaitable(result):
            result = await result
        base = result if isinstance(result, str) else text

        new_text = rebuild(doc, base)
        if new_text == text:
            logger.debug("No changes to %s", path)
        else:
            await asyncio.to_thread(save_document, path, new_text)
            logger.info("Saved %s", path)
            if settings.commit and message:
                await asyncio.to_thread(commit_file, path, message)

        new_doc = parse(new_text)
        new_doc.path = str(path)
        return new_doc


async def move(path, task_id: str, to_column: str, actor: str, **kwargs) -> Document:
    """Move a task under the lock. See board.move_task for kwargs."""
    settings = await asyncio.to_thread(read_settings, path)
    kwargs.setdefault("terminal", settings.terminal_column)
    return await mutate_under_lock(
        path,
        lambda doc, text: move_task(doc, task_id, to_column, actor, **kwargs),
        settings=settings,
        message=f"Move {task_id} to {to_column}",
    )


async def create(path, column: str, title: str, actor: str, **kwargs) -> tuple[Task, Document]:
    """Create a task under the lock. Returns (task, document)."""
    created: list[Task] = []

    def _create(doc, text):
        created.append(create_task(doc, column, title, actor, **kwargs))

    doc = await mutate_under_lock(path, _create, message=f"Add task: {title}")
    _, _, task = doc.find_task(created[0].id)
    return task, doc


async def update(path, task_id: str, **kwargs) -> Document:
    """Update a task under the lock. See board.update_task for kwargs."""
    return await mutate_under_lock(
        path,
        lambda doc, text: update_task(doc, task_id, **kwargs),
        message=f"Update {task_id}",
    )


async def delete(path, task_id: str) -> Document:
    """Delete a task under the lock."""
    return await mutate_under_lock(
        path,
        lambda doc, text: delete_task(doc, task_id),
        message=f"Delete {task_id}",
    )


async def approve(path, task_id: str, actor: str, **kwargs) -> Document:
    """Approve a task waiting in review: close it into the terminal column."""
    settings = await asyncio.to_thread(read_settings, path)
    kwargs.setdefault("terminal", settings.terminal_column)
    return await mutate_under_lock(
        path,
        lambda doc, text: approve_task(doc, task_id, actor, **kwargs),
        settings=settings,
        message=f"Approve {task_id}",
    )


async def reject(path, task_id: str, actor: str, **kwargs) -> Document:
    """Send a task waiting in review back to work. See board.reject_task."""
    return await mutate_under_lock(
        path,
        lambda doc, text: reject_task(doc, task_id, actor, **kwargs),
        message=f"Reject {task_id}",
    )


async def replace(path, document: Document) -> Document:
    """Save a caller-built document over the board at path.

    Columns are matched by title; see writer.rebuild.
    """

    def _replace(doc, text):
        doc.columns = document.columns
        doc.last_id = max(document.last_id or 0, doc.last_id or 0) or None
        doc.reindex()

    return await mutate_under_lock(path, _replace, message="Update board")


def serialize_task(task: Task, prefix: str = "") -> dict:
    data = {
        "id": task.id,
        "title": task.title,
        "metadata": {k: list(v) if isinstance(v, list) else v for k, v in task.metadata.items()},
        "body": list(task.body),
        "content": task.raw,
    }
    if prefix:
        data["displayId"] = build_display_id(task.id, prefix)
    return data


def serialize_for_display(document: Document, prefix: str = "") -> dict:
    """Plain-data projection of a document for display or JSON output.

    With a prefix each task also gets a displayId, e.g. "ACME-007".
    """
    return {
        "columns": [
            {
                "id": column.id,
                "title": column.title,
                "tasks": [serialize_task(task, prefix) for task in column.tasks],
            }
            for column in document.columns
        ],
        "config": dict(document.config),
        "meta": dict(document.meta),
    }
