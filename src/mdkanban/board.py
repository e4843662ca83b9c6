"""Task mutation operations on a parsed board."""

import logging
import re
from datetime import datetime, timezone

from mdkanban.errors import NotFound
from mdkanban.history import (
    DEFAULT_TERMINAL,
    append_history,
    ensure_closed_field,
    format_closed,
    format_entry,
    is_terminal,
)
from mdkanban.ids import format_task_id, next_id
from mdkanban.models import Column, Document, Task
from mdkanban.parser import HISTORY_CLOSE, HISTORY_OPEN, parse_task

logger = logging.getLogger(__name__)

# Fields re-rendered from metadata on update; any other bold key is kept as is.
_MANAGED_KEYS = {"priority", "project", "assigned", "creator", "created", "started", "tags", "closed"}
_FIELD_PAIR = re.compile(r"\*\*([^*]+)\*\*:\s*([^|]*)")
_DATE_FIELD = r"\*\*{}\*\*:\s*(\d{{4}}-\d{{2}}-\d{{2}})"

REVIEW_COLUMN = "Review"
REJECT_COLUMN = "In Progress"


def _today(when: datetime | None) -> str:
    return (when or datetime.now(timezone.utc)).strftime("%Y-%m-%d")


def _highest_number(doc: Document) -> int:
    numbers = [int(task.id.split("-", 1)[1]) for _, task in doc.tasks()]
    return max(numbers, default=0)


def render_task(
    task_id: str,
    title: str,
    *,
    priority: str = "P2",
    project: str | None = None,
    assigned: str | None = None,
    creator: str | None = None,
    created: str = "",
    started: str | None = None,
    closed: str | None = None,
    tags: str | None = None,
    extra_fields: list[str] | None = None,
    description: str | None = None,
    history: list[str] | None = None,
) -> str:
    """Render a task span in the canonical layout."""
    fields = [f"**Priority**: {priority or 'P2'}"]
    if project:
        fields.append(f"**Project**: {project}")
    if assigned:
        fields.append(f"**Assigned**: {assigned}")
    if creator:
        fields.append(f"**Creator**: {creator}")

    lines = [f"### {task_id} | {title}", "", " | ".join(fields)]
    dates = f"**Created**: {created}"
    if started:
        dates += f" | **Started**: {started}"
    lines.append(dates)
    if closed:
        lines.append(f"**Closed**: {closed}")
    if tags:
        lines.append(f"**Tags**: {tags}")
    lines.extend(extra_fields or [])
    if description:
        lines.extend(["", description.strip()])
    if history is not None:
        lines.extend(["", *history])
    return "\n".join(lines)


def create_task(
    doc: Document,
    column: str,
    title: str,
    actor: str,
    *,
    priority: str = "P2",
    project: str | None = None,
    assigned: str | None = None,
    creator: str | None = None,
    tags: str | None = None,
    description: str | None = None,
    position: int = 0,
    when: datetime | None = None,
) -> Task:
    """Create a task at the top of column (or at position) and return it.

    The new number comes from the counter comment, and is bumped past any
    task already on the board so ids stay unique if the counter was lost.
    The counter is rewritten when the document is rebuilt.
    """
    target = doc.find_column(column)

    number = max(next_id(doc.text), (doc.last_id or 0) + 1, _highest_number(doc) + 1)
    task_id = format_task_id(number)
    entry = format_entry(actor, f'created in "{target.title}"', when)

    raw = render_task(
        task_id,
        title,
        priority=priority,
        project=project,
        assigned=assigned,
        creator=creator,
        created=_today(when),
        tags=tags,
        description=description,
        history=[HISTORY_OPEN, entry, HISTORY_CLOSE],
    )
    task = parse_task(raw)
    target.tasks.insert(min(max(position, 0), len(target.tasks)), task)
    doc.last_id = number
    doc.reindex()
    logger.info("Created %s in %s", task_id, target.title)
    return task


def move_task(
    doc: Document,
    task_id: str,
    to_column: str,
    actor: str,
    *,
    from_column: str | None = None,
    position: int | None = None,
    when: datetime | None = None,
    terminal: str = DEFAULT_TERMINAL,
) -> Task:
    """Move a task to to_column at position (default: the end).

    Cross-column moves add a history entry, and the first move from an open
    column into a terminal one stamps the Closed field. Same-column moves
    only reorder.
    """
    source, index, task = doc.find_task(task_id)
    if from_column is not None and from_column not in (source.title, source.id):
        raise NotFound(f"Task '{task_id}' not found in column '{from_column}'")
    target = doc.find_column(to_column)

    del source.tasks[index]
    if target is not source:
        entry = format_entry(actor, f'moved from "{source.title}" to "{target.title}"', when)
        append_history(task, entry)
        if is_terminal(target.title, terminal) and not is_terminal(source.title, terminal):
            ensure_closed_field(task, format_closed(actor, when))

    insert_at = len(target.tasks) if position is None else min(max(position, 0), len(target.tasks))
    target.tasks.insert(insert_at, task)
    doc.reindex()
    logger.info("Moved %s from %s to %s", task_id, source.title, target.title)
    return task


def update_task(
    doc: Document,
    task_id: str,
    *,
    title: str | None = None,
    priority: str | None = None,
    project: str | None = None,
    assigned: str | None = None,
    creator: str | None = None,
    tags: str | None = None,
    description: str | None = None,
    actor: str | None = None,
    when: datetime | None = None,
) -> Task:
    """Rewrite a task's header, fields and description.

    Arguments left as None keep their current value; an empty string clears
    the field. Created, Started and Closed dates, unrecognized fields and
    the history block are carried over unchanged.
    """
    column, index, task = doc.find_task(task_id)
    meta = task.metadata

    def pick(value, key):
        return meta.get(key) if value is None else value

    history = _history_block(task.raw)
    raw = render_task(
        task.id,
        title or task.title,
        priority=pick(priority, "priority") or "P2",
        project=pick(project, "project"),
        assigned=pick(assigned, "assigned"),
        creator=pick(creator, "creator"),
        created=_date_field(task.raw, "Created") or _today(when),
        started=_date_field(task.raw, "Started"),
        closed=meta.get("closed"),
        tags=pick(tags, "tags"),
        extra_fields=_extra_fields(task.raw),
        description=description if description is not None else _description(task.raw),
        history=history or None,
    )
    updated = parse_task(raw)
    if actor:
        append_history(updated, format_entry(actor, "updated", when))
    column.tasks[index] = updated
    logger.info("Updated %s", task_id)
    return updated


def delete_task(doc: Document, task_id: str) -> Task:
    """Remove a task from its column. Its number is never handed out again."""
    column, index, task = doc.find_task(task_id)
    del column.tasks[index]
    doc.reindex()
    logger.info("Deleted %s from %s", task_id, column.title)
    return task


def _column_containing(doc: Document, marker: str) -> Column:
    for column in doc.columns:
        if marker in column.title:
            return column
    raise NotFound(f"{marker} column not found")


def _pop_for_review(doc: Document, task_id: str, review: str) -> Task:
    column = _column_containing(doc, review)
    for i, task in enumerate(column.tasks):
        if task.id == task_id:
            return column.tasks.pop(i)
    raise NotFound(f"Task '{task_id}' not found in {review}")


def review_tasks(doc: Document, review: str = REVIEW_COLUMN) -> list[Task]:
    """Tasks waiting in the review column, or [] when the board has none."""
    try:
        return list(_column_containing(doc, review).tasks)
    except NotFound:
        return []


def approve_task(
    doc: Document,
    task_id: str,
    actor: str,
    *,
    when: datetime | None = None,
    review: str = REVIEW_COLUMN,
    terminal: str = DEFAULT_TERMINAL,
) -> Task:
    """Move a task from review to the top of the terminal column and close it."""
    done = _column_containing(doc, terminal)
    task = _pop_for_review(doc, task_id, review)

    append_history(task, format_entry(actor, f"approved (moved to {terminal})", when))
    ensure_closed_field(task, format_closed(actor, when))
    done.tasks.insert(0, task)
    doc.reindex()
    logger.info("Approved %s into %s", task_id, done.title)
    return task


def reject_task(
    doc: Document,
    task_id: str,
    actor: str,
    *,
    feedback: str | None = None,
    when: datetime | None = None,
    review: str = REVIEW_COLUMN,
    target: str = REJECT_COLUMN,
) -> Task:
    """Send a task from review back to the top of the in-progress column."""
    back = _column_containing(doc, target)
    task = _pop_for_review(doc, task_id, review)

    action = f"rejected: {feedback}" if feedback else "rejected"
    append_history(task, format_entry(actor, action, when))
    back.tasks.insert(0, task)
    doc.reindex()
    logger.info("Rejected %s back to %s", task_id, back.title)
    return task


def _history_block(raw: str) -> list[str]:
    """Lines of the history comment block, markers included."""
    lines = raw.split("\n")
    for start, line in enumerate(lines):
        if HISTORY_OPEN in line:
            for end in range(start, len(lines)):
                if HISTORY_CLOSE in lines[end].split(HISTORY_OPEN, 1)[-1]:
                    return lines[start : end + 1]
            return [*lines[start:], HISTORY_CLOSE]
    return []


def _date_field(raw: str, key: str) -> str | None:
    match = re.search(_DATE_FIELD.format(key), raw)
    return match.group(1) if match else None


def _extra_fields(raw: str) -> list[str]:
    """Bold `**Key**: value` pairs we don't manage, one line per source line."""
    extra = []
    for line in _outside_history(raw)[1:]:
        if not line.startswith("**"):
            continue
        pairs = [
            f"**{key}**: {value.strip()}"
            for key, value in _FIELD_PAIR.findall(line)
            if key.strip().lower() not in _MANAGED_KEYS
        ]
        if pairs:
            extra.append(" | ".join(pairs))
    return extra


def _description(raw: str) -> str:
    """Free text of a task: everything but the header, fields and history."""
    lines = [line for line in _outside_history(raw)[1:] if not line.startswith("**")]
    return "\n".join(lines).strip()


def _outside_history(raw: str) -> list[str]:
    lines = raw.split("\n")
    block = _history_block(raw)
    if not block:
        return lines
    start = lines.index(block[0])
    return lines[:start] + lines[start + len(block) :]
