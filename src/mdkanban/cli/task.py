"""Handlers for 'mdkanban task' commands."""

import asyncio
import sys

from mdkanban import engine
from mdkanban.board import review_tasks
from mdkanban.cli._common import (
    actor,
    board_path,
    display_id,
    display_prefix,
    error,
    load_board_or_die,
    output_json,
    output_result,
    task_id_arg,
)
from mdkanban.errors import KanbanError, NotFound


def _run(coro, json_mode: bool):
    """Run an engine coroutine, turning engine and I/O errors into exit 1."""
    try:
        return asyncio.run(coro)
    except KanbanError as e:
        error(str(e), json_mode)
    except OSError as e:
        error(f"{e.filename or ''}: {e.strerror or e}", json_mode)


def task_list(args) -> int:
    """List tasks grouped by column."""
    doc = load_board_or_die(args)
    prefix = display_prefix(args)
    data = engine.serialize_for_display(doc, prefix)

    columns = [c for c in data["columns"] if not args.column or args.column in (c["id"], c["title"])]

    if args.json:
        items = [
            {**task, "column": {"id": col["id"], "title": col["title"]}}
            for col in columns
            for task in col["tasks"]
        ]
        output_json(items)
    else:
        for col in columns:
            print(col["title"])
            for task in col["tasks"]:
                print(f"  {task.get('displayId', task['id'])}  {task['title']}")

    return 0


def task_get(args) -> int:
    """Dump one task's markdown."""
    task_id = task_id_arg(args)
    doc = load_board_or_die(args)
    try:
        column, _, task = doc.find_task(task_id)
    except NotFound as e:
        error(str(e), args.json)

    if args.json:
        data = engine.serialize_task(task, display_prefix(args))
        data["column"] = {"id": column.id, "title": column.title}
        output_json(data)
    else:
        sys.stdout.write(task.raw.strip() + "\n")

    return 0


def task_add(args) -> int:
    """Create a task."""
    prefix = display_prefix(args)
    task, _ = _run(
        engine.create(
            board_path(args),
            args.column,
            args.title,
            actor(args),
            priority=args.priority,
            project=args.project or prefix or None,
            assigned=args.assigned,
            creator=args.creator,
            tags=args.tags,
            description=args.body,
        ),
        args.json,
    )

    shown = display_id(task.id, prefix)
    output_result(
        {"id": task.id, "displayId": shown, "title": task.title, "column": args.column},
        f"Created {shown} in {args.column}",
        args.json,
    )
    return 0


def task_move(args) -> int:
    """Move a task to a column."""
    task_id = task_id_arg(args)
    position = args.position - 1 if args.position is not None else None
    doc = _run(
        engine.move(
            board_path(args),
            task_id,
            args.column,
            actor(args),
            from_column=args.from_column,
            position=position,
        ),
        args.json,
    )

    column, _, _ = doc.find_task(task_id)
    shown = display_id(task_id, display_prefix(args))
    output_result(
        {"id": task_id, "displayId": shown, "column": {"id": column.id, "title": column.title}},
        f"Moved {shown} to {column.title}",
        args.json,
    )
    return 0


def task_update(args) -> int:
    """Update a task's title, fields or description."""
    task_id = task_id_arg(args)
    _run(
        engine.update(
            board_path(args),
            task_id,
            title=args.title,
            priority=args.priority,
            project=args.project,
            assigned=args.assigned,
            creator=args.creator,
            tags=args.tags,
            description=args.body,
            actor=actor(args),
        ),
        args.json,
    )

    shown = display_id(task_id, display_prefix(args))
    output_result({"id": task_id, "displayId": shown}, f"Updated {shown}", args.json)
    return 0


def task_delete(args) -> int:
    """Delete a task."""
    task_id = task_id_arg(args)
    _run(engine.delete(board_path(args), task_id), args.json)

    shown = display_id(task_id, display_prefix(args))
    output_result({"id": task_id, "displayId": shown}, f"Deleted {shown}", args.json)
    return 0


def task_review(args) -> int:
    """List tasks waiting in the review column."""
    doc = load_board_or_die(args)
    prefix = display_prefix(args)
    tasks = review_tasks(doc)

    if args.json:
        output_json([engine.serialize_task(task, prefix) for task in tasks])
    else:
        for task in tasks:
            print(f"{display_id(task.id, prefix)}  {task.title}")

    return 0


def task_approve(args) -> int:
    """Approve a task in review and close it."""
    task_id = task_id_arg(args)
    doc = _run(engine.approve(board_path(args), task_id, actor(args)), args.json)

    column, _, _ = doc.find_task(task_id)
    shown = display_id(task_id, display_prefix(args))
    output_result(
        {"id": task_id, "displayId": shown, "column": {"id": column.id, "title": column.title}},
        f"Approved {shown}",
        args.json,
    )
    return 0


def task_reject(args) -> int:
    """Send a task in review back to work."""
    task_id = task_id_arg(args)
    doc = _run(
        engine.reject(board_path(args), task_id, actor(args), feedback=args.feedback),
        args.json,
    )

    column, _, _ = doc.find_task(task_id)
    shown = display_id(task_id, display_prefix(args))
    output_result(
        {"id": task_id, "displayId": shown, "column": {"id": column.id, "title": column.title}},
        f"Rejected {shown} back to {column.title}",
        args.json,
    )
    return 0
