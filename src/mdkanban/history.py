"""Audit trail and closed-field helpers for task spans."""

from datetime import datetime, timezone

from mdkanban.models import Task
from mdkanban.parser import HISTORY_CLOSE, HISTORY_OPEN

DEFAULT_TERMINAL = "Done"


def _now(when: datetime | None) -> datetime:
    return when or datetime.now(timezone.utc)


def format_entry(actor: str, action: str, when: datetime | None = None) -> str:
    """`2024-03-01 14:05 | alice moved from "A" to "B"`."""
    return f"{_now(when).strftime('%Y-%m-%d %H:%M')} | {actor} {action}"


def format_closed(actor: str, when: datetime | None = None) -> str:
    return f"**Closed**: {_now(when).strftime('%Y-%m-%d')} by {actor}"


def is_terminal(column_title: str, marker: str = DEFAULT_TERMINAL) -> bool:
    """True for columns whose title marks work as finished."""
    return marker in column_title


def append_history(task: Task, entry: str) -> Task:
    """Append entry to the task's history block, creating the block if needed.

    Existing entries are never touched; the new one goes right before the
    closing marker.
    """
    lines = task.raw.split("\n")
    start = next((i for i, line in enumerate(lines) if HISTORY_OPEN in line), None)
    end = None
    if start is not None:
        end = next((i for i in range(start, len(lines)) if HISTORY_CLOSE in lines[i]), None)

    if start is None:
        task.raw = f"{task.raw.strip()}\n\n{HISTORY_OPEN}\n{entry}\n{HISTORY_CLOSE}"
        task.metadata["history"] = [entry]
        return task

    if end is None:
        # Unclosed block: add the entry and close it.
        task.raw = f"{task.raw.rstrip()}\n{entry}\n{HISTORY_CLOSE}"
        task.metadata.setdefault("history", []).append(entry)
        return task

    if end == start:
        # <!-- History: entry --> on one line: expand to a block.
        inner = lines[start].split(HISTORY_OPEN, 1)[1].split(HISTORY_CLOSE, 1)[0].strip()
        lines[start : start + 1] = [HISTORY_OPEN, *([inner] if inner else []), entry, HISTORY_CLOSE]
        task.raw = "\n".join(lines)
        task.metadata.setdefault("history", []).append(entry)
        return task

    closing = lines[end]
    before, after = closing.split(HISTORY_CLOSE, 1)
    if before.strip():
        # Entry shares a line with the closing marker: split it off.
        lines[end : end + 1] = [before.rstrip(), entry, HISTORY_CLOSE + after]
    else:
        lines.insert(end, entry)
    task.raw = "\n".join(lines)
    task.metadata.setdefault("history", []).append(entry)
    return task


def ensure_closed_field(task: Task, closed_line: str) -> Task:
    """Insert a `**Closed**:` field after the last field line, once."""
    if "**Closed**:" in task.raw:
        return task

    lines = task.raw.split("\n")
    insert_at = 1
    for i, line in enumerate(lines):
        if HISTORY_OPEN in line:
            break
        if line.startswith("**"):
            insert_at = i + 1
    lines.insert(insert_at, closed_line)
    task.raw = "\n".join(lines)
    task.metadata["closed"] = closed_line.split(":", 1)[1].strip()
    return task
