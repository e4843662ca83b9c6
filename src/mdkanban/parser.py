"""Parse markdown board files into a Document.

The format is a narrow dialect: emoji-tagged `##` column headings, a
`## ⚙️ Configuration` section, `### TASK-NNN | title` task headings with
bold `**Key**: value` field lines, and an optional `<!-- History: ... -->`
comment block per task. Anything else is carried along untouched.
"""

import logging
import re
from enum import Enum

import yaml

from mdkanban.errors import MalformedSentinel
from mdkanban.ids import read_last_id
from mdkanban.models import Column, Document, Task

logger = logging.getLogger(__name__)

COLUMN_MARKERS = ("💡", "📋", "🔨", "🚧", "👀", "✅")
HISTORY_OPEN = "<!-- History:"
HISTORY_CLOSE = "-->"

_CONFIG_HEADER = re.compile(r"^## ⚙️? ?Configuration")
_COLUMN_HEADER = re.compile(r"^## (?:" + "|".join(COLUMN_MARKERS) + ")")
_TASK_HEADER = re.compile(r"^### (TASK-\d+) \| (.+)$")
_CONFIG_FIELD = re.compile(r"^\*\*([^*]+)\*\*:\s*(.+)$")

# Pipe-delimited fields stop at the next "|"; tags and closed take the rest.
_FIELDS = {
    "priority": re.compile(r"\*\*Priority\*\*:\s*([^|]+)"),
    "project": re.compile(r"\*\*Project\*\*:\s*([^|]+)"),
    "assigned": re.compile(r"\*\*Assigned\*\*:\s*([^|]+)"),
    "creator": re.compile(r"\*\*Creator\*\*:\s*([^|]+)"),
    "tags": re.compile(r"\*\*Tags\*\*:\s*(.+)$"),
    "closed": re.compile(r"\*\*Closed\*\*:\s*(.+)$"),
}


class Mode(Enum):
    TOP_LEVEL = "top-level"
    CONFIG = "config"
    TASK = "task"
    HISTORY = "history"


def is_config_header(line: str) -> bool:
    return bool(_CONFIG_HEADER.match(line))


def is_column_header(line: str) -> bool:
    return bool(_COLUMN_HEADER.match(line)) and not is_config_header(line)


def column_title(line: str) -> str:
    """Heading text of a `## ` line, without the marker or trailing CR."""
    return line[3:].rstrip("\r").strip()


def match_task_header(line: str) -> tuple[str, str] | None:
    """Return (task_id, title) for a `### TASK-NNN | title` line."""
    match = _TASK_HEADER.match(line.rstrip("\r"))
    if not match:
        return None
    return match.group(1), match.group(2).strip()


def _opens_history(line: str) -> bool:
    if HISTORY_OPEN not in line:
        return False
    return HISTORY_CLOSE not in line.split(HISTORY_OPEN, 1)[1]


def next_mode(mode: Mode, line: str) -> Mode:
    """Return the parser mode after reading line while in mode."""
    if is_config_header(line):
        return Mode.CONFIG
    if is_column_header(line):
        return Mode.TOP_LEVEL
    if match_task_header(line):
        return Mode.TASK
    if mode is Mode.HISTORY:
        return Mode.TASK if HISTORY_CLOSE in line else Mode.HISTORY
    if mode is Mode.TASK and _opens_history(line):
        return Mode.HISTORY
    return mode


def extract_fields(line: str) -> dict[str, str]:
    """Pull every recognized `**Key**: value` pair out of a field line."""
    fields = {}
    for key, pattern in _FIELDS.items():
        match = pattern.search(line)
        if match:
            fields[key] = match.group(1).strip()
    return fields


def parse(text: str) -> Document:
    """Parse board markdown into a Document. Never raises on bad input."""
    meta, skip = _extract_front_matter(text)
    lines = text.split("\n")
    doc = Document(meta=meta, text=text)

    column: Column | None = None
    column_start = 0
    task: Task | None = None
    task_lines: list[str] = []
    mode = Mode.TOP_LEVEL

    def flush_task():
        nonlocal task, task_lines
        if task is not None:
            task.raw = "\n".join(task_lines)
            if column is not None:
                column.tasks.append(task)
            else:
                logger.debug("Ignoring %s outside of any column", task.id)
        task = None
        task_lines = []

    def close_column(end: int):
        nonlocal column
        flush_task()
        if column is not None:
            column.source = lines[column_start + 1 : end]
            column.snapshot = column.fingerprint()
        column = None

    for i, line in enumerate(lines):
        if i < skip:
            continue
        new_mode = next_mode(mode, line)

        if is_config_header(line):
            close_column(i)
            mode = new_mode
            continue

        if is_column_header(line):
            close_column(i)
            column = Column(title=column_title(line))
            column_start = i
            doc.columns.append(column)
            mode = new_mode
            continue

        header = match_task_header(line)
        if header:
            flush_task()
            task = Task(id=header[0], title=header[1])
            task_lines = [line]
            mode = Mode.TASK
            continue

        if mode is Mode.HISTORY:
            task_lines.append(line)
            entry = line.split(HISTORY_CLOSE, 1)[0].strip()
            if entry:
                task.metadata["history"].append(entry)
            mode = new_mode
            continue

        if mode is Mode.CONFIG:
            match = _CONFIG_FIELD.match(line.rstrip("\r"))
            if match:
                doc.config[match.group(1).strip().lower()] = match.group(2).strip()
            continue

        if task is None:
            if column is not None and not column.tasks:
                column.lead.append(line)
            continue

        task_lines.append(line)
        if new_mode is Mode.HISTORY:
            task.metadata["history"] = []
        elif HISTORY_OPEN in line:
            # Single-line block: <!-- History: entry -->
            entry = line.split(HISTORY_OPEN, 1)[1].split(HISTORY_CLOSE, 1)[0].strip()
            task.metadata["history"] = [entry] if entry else []
        elif line.startswith("**"):
            task.metadata.update(extract_fields(line))
        elif line.strip():
            task.body.append(line)
        mode = new_mode

    close_column(len(lines))
    flush_task()
    doc.reindex()
    try:
        doc.last_id = read_last_id(text)
    except MalformedSentinel:
        doc.last_id = None
    logger.debug("Parsed %d columns, %d tasks", len(doc.columns), sum(len(c.tasks) for c in doc.columns))
    return doc


def _extract_front_matter(text: str) -> tuple[dict, int]:
    """Extract YAML front-matter. Returns (meta, number of lines it spans)."""
    if not text.startswith("---"):
        return {}, 0

    match = re.match(r"^---\n(.*?)\n---\n?", text, re.DOTALL)
    if not match:
        return {}, 0

    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        meta = {}
    if not isinstance(meta, dict):
        meta = {}

    return meta, match.group(0).rstrip("\n").count("\n") + 1


def parse_task(raw: str) -> Task:
    """Parse a single task span on its own."""
    doc = parse(f"## {COLUMN_MARKERS[0]}\n{raw}")
    tasks = doc.columns[0].tasks
    if not tasks:
        raise ValueError(f"Not a task: {raw.splitlines()[0] if raw else raw!r}")
    return tasks[0]


def first_title(text: str) -> str:
    """Text of the first `# ` heading, or empty string."""
    for line in text.split("\n"):
        if line.startswith("# "):
            return line[2:].strip()
    return ""
