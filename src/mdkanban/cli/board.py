"""Handlers for 'mdkanban board' commands."""

import sys

from mdkanban.cli._common import (
    build_column_summaries,
    format_column_line,
    load_board_or_die,
    output_json,
)
from mdkanban.parser import first_title


def board_summary(args) -> int:
    """Show board summary: title, columns, task counts."""
    doc = load_board_or_die(args)
    title = first_title(doc.text)
    columns = build_column_summaries(doc)

    if args.json:
        output_json({"title": title, "columns": columns, "config": doc.config, "lastId": doc.last_id})
    else:
        print(title)
        for c in columns:
            print(format_column_line(c, indent="  "))

    return 0


def board_get(args) -> int:
    """Dump the raw board markdown."""
    doc = load_board_or_die(args)

    if args.json:
        output_json({"title": first_title(doc.text), "markdown": doc.text})
    else:
        sys.stdout.write(doc.text)

    return 0


def board_columns(args) -> int:
    """List columns with their ids."""
    doc = load_board_or_die(args)
    columns = build_column_summaries(doc)

    if args.json:
        output_json(columns)
    else:
        for c in columns:
            print(f"{c['id']}  {c['title']}")

    return 0
