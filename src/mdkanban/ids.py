"""Task ID allocation and display-id conversion."""

import logging
import re

from mdkanban.errors import MalformedSentinel

logger = logging.getLogger(__name__)

ID_WIDTH = 3

_SENTINEL = re.compile(r"<!-- Config: Last Task ID: (\S*?) -->")
_INTERNAL_ID = re.compile(r"^TASK-(\d+)$", re.IGNORECASE)
_DISPLAY_ID = re.compile(r"^[A-Z0-9_-]+-(\d+)$", re.IGNORECASE)


def pad_id(s: str, width: int = ID_WIDTH) -> str:
    """Zero-pad an ID to the given width.

    "1" → "001", "10" → "010", "1000" → "1000"
    """
    return s.zfill(width)


def format_task_id(number: int) -> str:
    """7 → "TASK-007"."""
    return f"TASK-{pad_id(str(number))}"


def task_number(task_id: str) -> str:
    """Digits of an internal id, as written: "TASK-007" → "007"."""
    return re.sub(r"^TASK-", "", task_id, flags=re.IGNORECASE)


def read_last_id(text: str) -> int:
    """Read the counter sentinel. Raises MalformedSentinel if missing or corrupt."""
    match = _SENTINEL.search(text)
    if match is None:
        raise MalformedSentinel("No task counter comment in document")
    try:
        return int(match.group(1))
    except ValueError:
        raise MalformedSentinel(f"Unreadable task counter: {match.group(1)!r}")


def next_id(text: str) -> int:
    """Return the number for the next task: last issued + 1, or 1 if unknown."""
    try:
        last = read_last_id(text)
    except MalformedSentinel as e:
        logger.debug("%s, starting from 0", e)
        last = 0
    return last + 1


def stamp_id(text: str, number: int) -> str:
    """Rewrite the counter sentinel to number.

    If the document has no sentinel yet, one is added under the `# ` title
    line, or at the top when there is no title.
    """
    sentinel = f"<!-- Config: Last Task ID: {pad_id(str(number))} -->"
    if _SENTINEL.search(text):
        return _SENTINEL.sub(lambda _: sentinel, text, count=1)

    logger.warning("Task counter comment missing, inserting it")
    lines = text.split("\n")
    for i, line in enumerate(lines):
        if line.startswith("# "):
            lines[i + 1 : i + 1] = ["", sentinel]
            return "\n".join(lines)
    return f"{sentinel}\n\n{text}"


def build_display_id(task_id: str, prefix: str) -> str:
    """TASK-007 under prefix "acme" → "ACME-007"."""
    return f"{prefix.upper()}-{task_number(task_id)}"


def normalize_id(value: str) -> str:
    """Accept an internal or display id and return the internal form.

    "task-7" → "TASK-7", "ACME-7" → "TASK-007", anything else unchanged.
    """
    value = value.strip()
    if _INTERNAL_ID.match(value):
        return value.upper()
    match = _DISPLAY_ID.match(value)
    if match:
        return f"TASK-{pad_id(match.group(1))}"
    return value
