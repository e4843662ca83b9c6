"""Rebuild board markdown from a Document by patching the original text.

Only the bodies of recognized columns that changed are regenerated. Every
other line (title, counter comment, configuration, narrative text, columns
the model doesn't know about, untouched columns) is copied from the original.
"""

import logging
from collections import defaultdict, deque

from mdkanban.errors import MalformedSentinel
from mdkanban.ids import read_last_id, stamp_id
from mdkanban.models import Column, Document
from mdkanban.parser import column_title, is_column_header, is_config_header

logger = logging.getLogger(__name__)


def _body_end(lines: list[str], start: int) -> int:
    """Index of the line ending the column body that starts at start."""
    for i in range(start, len(lines)):
        if is_column_header(lines[i]) or is_config_header(lines[i]):
            return i
    return len(lines)


def render_column_body(column: Column) -> list[str]:
    """Lines for a regenerated column body (everything after its header)."""
    lead = list(column.lead)
    while lead and not lead[-1].strip():
        lead.pop()

    out = [*lead, ""]
    for task in column.tasks:
        out.append(task.raw.strip())
        out.append("")
    return out


def rebuild(document: Document, original_text: str) -> str:
    """Re-emit original_text with the document's column bodies patched in.

    Column headers are matched to model columns by title, in order, so a
    board with two columns of the same title maps each to its own model
    column. Headers with no model column keep their original body.
    """
    lines = original_text.split("\n")

    by_title: dict[str, deque[Column]] = defaultdict(deque)
    for column in document.columns:
        by_title[column.title].append(column)

    result: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if not is_column_header(line):
            result.append(line)
            i += 1
            continue

        end = _body_end(lines, i + 1)
        body = lines[i + 1 : end]
        result.append(line)

        title = column_title(line)
        column = by_title[title].popleft() if by_title[title] else None
        if column is None:
            logger.debug("Column '%s' not in model, keeping original body", title)
            result.extend(body)
        elif not column.is_dirty() and column.source == body:
            result.extend(body)
        else:
            logger.debug("Rewriting column '%s' (%d tasks)", title, len(column.tasks))
            result.extend(render_column_body(column))
        i = end

    text = "\n".join(result)
    if document.last_id is not None and document.last_id != _last_id_or_none(original_text):
        text = stamp_id(text, document.last_id)
    return text


def _last_id_or_none(text: str) -> int | None:
    try:
        return read_last_id(text)
    except MalformedSentinel:
        return None
