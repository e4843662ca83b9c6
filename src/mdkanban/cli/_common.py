"""Shared helpers for CLI command handlers."""

import getpass
import json
import sys
from pathlib import Path

from mdkanban.engine import load_and_parse
from mdkanban.git import Settings, read_settings
from mdkanban.ids import build_display_id, normalize_id
from mdkanban.models import Document


def board_path(args) -> Path:
    return Path(args.file).resolve()


def load_board_or_die(args) -> Document:
    """Load the board file. Exit 1 with message if it can't be read."""
    path = board_path(args)
    try:
        return load_and_parse(path)
    except OSError as e:
        error(f"Cannot read board {path}: {e.strerror or e}", args.json)


def settings_for(args) -> Settings:
    return read_settings(board_path(args))


def display_prefix(args) -> str:
    """--prefix, else kanban.prefix from git config."""
    return getattr(args, "prefix", None) or settings_for(args).prefix


def task_id_arg(args) -> str:
    return normalize_id(args.id)


def display_id(task_id: str, prefix: str) -> str:
    return build_display_id(task_id, prefix) if prefix else task_id


def actor(args) -> str:
    return getattr(args, "actor", None) or getpass.getuser()


def output_json(data: dict | list) -> None:
    """Write JSON to stdout."""
    print(json.dumps(data, indent=2, ensure_ascii=False))


def output_result(data: dict, text: str, json_mode: bool) -> None:
    """Output mutation result as JSON or plain text."""
    if json_mode:
        output_json(data)
    else:
        print(text)


def error(message: str, json_mode: bool) -> None:
    """Print error to stderr and exit 1."""
    if json_mode:
        print(json.dumps({"error": message}, ensure_ascii=False), file=sys.stderr)
    else:
        print(f"error: {message}", file=sys.stderr)
    sys.exit(1)


def build_column_summaries(doc: Document) -> list[dict]:
    """Build column summary dicts from a board."""
    return [{"id": col.id, "title": col.title, "tasks": len(col.tasks)} for col in doc.columns]


def format_column_line(c: dict, indent: str = "") -> str:
    """Format a column summary dict as a text line."""
    tasks = "task" if c["tasks"] == 1 else "tasks"
    return f"{indent}{c['title']:<20} {c['tasks']} {tasks}"
