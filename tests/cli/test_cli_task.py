"""Tests for 'mdkanban task' commands."""

import json

import pytest

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
from mdkanban.engine import load_and_parse

ADD_DEFAULTS = dict(priority="P2", project=None, assigned=None, creator=None, tags=None, body=None)
UPDATE_DEFAULTS = dict(title=None, priority=None, project=None, assigned=None, creator=None, tags=None, body=None)


def test_task_list(make_args, capsys):
    assert task_list(make_args(column=None)) == 0

    out = capsys.readouterr().out
    assert "📋 Backlog" in out
    assert "TASK-001  Write docs" in out
    assert "TASK-003  Ship release" in out


def test_task_list_filter_column(make_args, capsys):
    assert task_list(make_args(column="🔨 In Progress")) == 0

    out = capsys.readouterr().out
    assert "Ship release" in out
    assert "Write docs" not in out


def test_task_list_json(make_args, capsys):
    assert task_list(make_args(column=None, json=True, prefix="acme")) == 0

    data = json.loads(capsys.readouterr().out)
    assert [t["id"] for t in data] == ["TASK-001", "TASK-002", "TASK-003"]
    assert data[0]["displayId"] == "ACME-001"
    assert data[0]["column"] == {"id": "-backlog", "title": "📋 Backlog"}


def test_task_get(make_args, capsys):
    assert task_get(make_args(id="TASK-002")) == 0

    out = capsys.readouterr().out
    assert out.startswith("### TASK-002 | Fix login\n")
    assert "**Estimate**: 3" in out


def test_task_get_by_display_id(make_args, capsys):
    assert task_get(make_args(id="ACME-2", json=True)) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["id"] == "TASK-002"
    assert data["metadata"]["creator"] == "bob"
    assert data["column"]["title"] == "📋 Backlog"


def test_task_get_not_found(make_args, capsys):
    with pytest.raises(SystemExit) as exc_info:
        task_get(make_args(id="TASK-404"))
    assert exc_info.value.code == 1
    assert "TASK-404" in capsys.readouterr().err


def test_task_add(make_args, board_file, capsys):
    args = make_args(title="New task", column="📋 Backlog", **ADD_DEFAULTS)
    assert task_add(args) == 0

    assert capsys.readouterr().out.strip() == "Created TASK-004 in 📋 Backlog"
    doc = load_and_parse(board_file)
    task = doc.find_task("TASK-004")[2]
    assert task.title == "New task"
    assert task.history[0].endswith('tester created in "📋 Backlog"')


def test_task_add_json_with_prefix(make_args, board_file, capsys):
    args = make_args(title="New task", column="📋 Backlog", json=True, prefix="acme", **ADD_DEFAULTS)
    assert task_add(args) == 0

    data = json.loads(capsys.readouterr().out)
    assert data == {"id": "TASK-004", "displayId": "ACME-004", "title": "New task", "column": "📋 Backlog"}
    task = load_and_parse(board_file).find_task("TASK-004")[2]
    assert task.metadata["project"] == "acme"


def test_task_add_bad_column(make_args, board_file, board_text, capsys):
    args = make_args(title="New task", column="Nowhere", **ADD_DEFAULTS)
    with pytest.raises(SystemExit) as exc_info:
        task_add(args)
    assert exc_info.value.code == 1
    assert "Nowhere" in capsys.readouterr().err
    assert board_file.read_text(encoding="utf-8") == board_text


def test_task_add_missing_board(make_args, tmp_path, capsys):
    args = make_args(file=str(tmp_path / "missing.md"), title="X", column="📋 Backlog", **ADD_DEFAULTS)
    with pytest.raises(SystemExit) as exc_info:
        task_add(args)
    assert exc_info.value.code == 1
    assert "missing.md" in capsys.readouterr().err


def test_task_move(make_args, board_file, capsys):
    args = make_args(id="TASK-001", column="✅ Done", from_column=None, position=None)
    assert task_move(args) == 0

    assert capsys.readouterr().out.strip() == "Moved TASK-001 to ✅ Done"
    column, _, task = load_and_parse(board_file).find_task("TASK-001")
    assert column.title == "✅ Done"
    assert "**Closed**:" in task.raw
    assert "by tester" in task.metadata["closed"]


def test_task_move_position(make_args, board_file):
    args = make_args(id="TASK-001", column="🔨 In Progress", from_column=None, position=1)
    assert task_move(args) == 0

    doc = load_and_parse(board_file)
    assert [t.id for t in doc.columns[1].tasks] == ["TASK-001", "TASK-003"]


def test_task_move_json(make_args, capsys):
    args = make_args(id="acme-3", column="-done", from_column=None, position=None, json=True)
    assert task_move(args) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["id"] == "TASK-003"
    assert data["column"] == {"id": "-done", "title": "✅ Done"}


def test_task_move_wrong_source(make_args, capsys):
    args = make_args(id="TASK-001", column="✅ Done", from_column="✅ Done", position=None, json=True)
    with pytest.raises(SystemExit) as exc_info:
        task_move(args)
    assert exc_info.value.code == 1
    assert "error" in json.loads(capsys.readouterr().err)


def test_task_update(make_args, board_file, capsys):
    args = make_args(id="TASK-003", **{**UPDATE_DEFAULTS, "title": "Ship it", "assigned": "carol"})
    assert task_update(args) == 0

    assert capsys.readouterr().out.strip() == "Updated TASK-003"
    task = load_and_parse(board_file).find_task("TASK-003")[2]
    assert task.title == "Ship it"
    assert task.metadata["assigned"] == "carol"
    assert task.body == ["Some notes here.", "  indented line"]


def test_task_delete(make_args, board_file, capsys):
    assert task_delete(make_args(id="TASK-002")) == 0

    assert capsys.readouterr().out.strip() == "Deleted TASK-002"
    doc = load_and_parse(board_file)
    assert [t.id for t in doc.columns[0].tasks] == ["TASK-001"]
    assert doc.last_id == 3


def test_task_delete_not_found(make_args):
    with pytest.raises(SystemExit) as exc_info:
        task_delete(make_args(id="TASK-404"))
    assert exc_info.value.code == 1


def test_task_update_project(make_args, board_file):
    args = make_args(id="TASK-002", **{**UPDATE_DEFAULTS, "project": "acme"})
    assert task_update(args) == 0

    task = load_and_parse(board_file).find_task("TASK-002")[2]
    assert task.metadata["project"] == "acme"
    assert task.metadata["creator"] == "bob"


def _add_review_column(board_file):
    text = board_file.read_text(encoding="utf-8")
    board_file.write_text(
        text.replace("## ✅ Done", "## 👀 Review\n\n### TASK-004 | Check me\n\n## ✅ Done"),
        encoding="utf-8",
    )


def test_task_review(make_args, board_file, capsys):
    _add_review_column(board_file)
    assert task_review(make_args(prefix="acme")) == 0
    assert capsys.readouterr().out.strip() == "ACME-004  Check me"


def test_task_review_json_empty(make_args, capsys):
    assert task_review(make_args(json=True)) == 0
    assert json.loads(capsys.readouterr().out) == []


def test_task_approve(make_args, board_file, capsys):
    _add_review_column(board_file)
    assert task_approve(make_args(id="TASK-004")) == 0

    assert capsys.readouterr().out.strip() == "Approved TASK-004"
    column, index, task = load_and_parse(board_file).find_task("TASK-004")
    assert (column.title, index) == ("✅ Done", 0)
    assert "by tester" in task.metadata["closed"]


def test_task_reject(make_args, board_file, capsys):
    _add_review_column(board_file)
    assert task_reject(make_args(id="TASK-004", feedback="needs tests", json=True)) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["column"]["title"] == "🔨 In Progress"
    task = load_and_parse(board_file).find_task("TASK-004")[2]
    assert task.history[-1].endswith("tester rejected: needs tests")


def test_task_approve_not_in_review(make_args, capsys):
    with pytest.raises(SystemExit) as exc_info:
        task_approve(make_args(id="TASK-001"))
    assert exc_info.value.code == 1
    assert "error:" in capsys.readouterr().err
