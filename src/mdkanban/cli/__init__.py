"""CLI argument parser and dispatch for mdkanban."""

import argparse

from mdkanban.cli.board import board_columns, board_get, board_summary
from mdkanban.cli.init import init_board
from mdkanban.cli.task import (
    task_add,
    task_approve,
    task_delete,
    task_get,
    task_list,
    task_move,
    task_reject,
    task_review,
    task_update,
)


def _common_options(suppress: bool = False) -> argparse.ArgumentParser:
    """Options accepted before or after any noun and verb.

    Subcommand copies default to SUPPRESS so a flag given before the noun
    is not reset by the subcommand.
    """

    def default(value):
        return argparse.SUPPRESS if suppress else value

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--file", "-f", default=default("KANBAN.md"), help="Board file (default: KANBAN.md)")
    common.add_argument("--json", action="store_true", default=default(False), help="Machine-readable JSON output")
    common.add_argument(
        "--prefix", default=default(None), help="Project prefix for display ids (default: git config kanban.prefix)"
    )
    common.add_argument("--verbose", "-v", action="store_true", default=default(False), help="Log to stderr")
    return common


def build_parser() -> argparse.ArgumentParser:
    """Build the full CLI argument parser."""
    common = _common_options(suppress=True)

    parser = argparse.ArgumentParser(
        prog="mdkanban",
        description="Markdown kanban boards",
        parents=[_common_options()],
    )

    nouns = parser.add_subparsers(dest="noun")

    # --- init ---
    init_p = nouns.add_parser("init", help="Create a board file", parents=[common])
    init_p.add_argument("title", help="Board name")
    init_p.add_argument("--force", action="store_true", help="Overwrite an existing file")
    init_p.set_defaults(func=init_board)

    # --- board ---
    board_p = nouns.add_parser("board", help="Board operations", parents=[common])
    board_verbs = board_p.add_subparsers(dest="verb")

    board_summary_p = board_verbs.add_parser("summary", help="Show board summary", parents=[common])
    board_summary_p.set_defaults(func=board_summary)

    board_get_p = board_verbs.add_parser("get", help="Dump board markdown", parents=[common])
    board_get_p.set_defaults(func=board_get)

    board_columns_p = board_verbs.add_parser("columns", help="List columns", parents=[common])
    board_columns_p.set_defaults(func=board_columns)

    # board with no verb = summary
    board_p.set_defaults(func=board_summary)

    # --- task ---
    task_p = nouns.add_parser("task", help="Task operations", parents=[common])
    task_verbs = task_p.add_subparsers(dest="verb")

    task_list_p = task_verbs.add_parser("list", help="List tasks", parents=[common])
    task_list_p.add_argument("--column", dest="column", help="Filter by column title or id")
    task_list_p.set_defaults(func=task_list)

    task_get_p = task_verbs.add_parser("get", help="Dump task markdown", parents=[common])
    task_get_p.add_argument("id", help="Task ID (TASK-001 or PREFIX-001)")
    task_get_p.set_defaults(func=task_get)

    task_add_p = task_verbs.add_parser("add", help="Create a task", parents=[common])
    task_add_p.add_argument("title", help="Task title")
    task_add_p.add_argument("--column", dest="column", required=True, help="Target column title or id")
    task_add_p.add_argument("--priority", default="P2", help="Priority (default: P2)")
    task_add_p.add_argument("--project", help="Project field (default: the display prefix)")
    task_add_p.add_argument("--assigned", help="Assignee")
    task_add_p.add_argument("--creator", help="Creator")
    task_add_p.add_argument("--tags", help="Tags")
    task_add_p.add_argument("--body", help="Description text")
    task_add_p.add_argument("--actor", help="Name recorded in history (default: current user)")
    task_add_p.set_defaults(func=task_add)

    task_move_p = task_verbs.add_parser("move", help="Move a task", parents=[common])
    task_move_p.add_argument("id", help="Task ID")
    task_move_p.add_argument("--column", dest="column", required=True, help="Target column title or id")
    task_move_p.add_argument("--from", dest="from_column", help="Expected source column")
    task_move_p.add_argument("--position", type=int, help="Position in column (1-indexed)")
    task_move_p.add_argument("--actor", help="Name recorded in history (default: current user)")
    task_move_p.set_defaults(func=task_move)

    task_update_p = task_verbs.add_parser("update", help="Update a task", parents=[common])
    task_update_p.add_argument("id", help="Task ID")
    task_update_p.add_argument("--title", help="New title")
    task_update_p.add_argument("--priority", help="Priority")
    task_update_p.add_argument("--project", help="Project field")
    task_update_p.add_argument("--assigned", help="Assignee")
    task_update_p.add_argument("--creator", help="Creator")
    task_update_p.add_argument("--tags", help="Tags")
    task_update_p.add_argument("--body", help="Description text")
    task_update_p.add_argument("--actor", help="Name recorded in history (default: current user)")
    task_update_p.set_defaults(func=task_update)

    task_delete_p = task_verbs.add_parser("delete", help="Delete a task", parents=[common])
    task_delete_p.add_argument("id", help="Task ID")
    task_delete_p.set_defaults(func=task_delete)

    task_review_p = task_verbs.add_parser("review", help="List tasks waiting for review", parents=[common])
    task_review_p.set_defaults(func=task_review)

    task_approve_p = task_verbs.add_parser("approve", help="Approve a task in review", parents=[common])
    task_approve_p.add_argument("id", help="Task ID")
    task_approve_p.add_argument("--actor", help="Name recorded in history (default: current user)")
    task_approve_p.set_defaults(func=task_approve)

    task_reject_p = task_verbs.add_parser("reject", help="Send a task in review back to work", parents=[common])
    task_reject_p.add_argument("id", help="Task ID")
    task_reject_p.add_argument("--feedback", help="Reason recorded in history")
    task_reject_p.add_argument("--actor", help="Name recorded in history (default: current user)")
    task_reject_p.set_defaults(func=task_reject)

    # task with no verb = list
    task_p.set_defaults(func=task_list, column=None)

    return parser
