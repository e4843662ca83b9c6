"""Tests for history entries and the Closed field."""

from mdkanban.history import (
    append_history,
    ensure_closed_field,
    format_closed,
    format_entry,
    is_terminal,
)
from mdkanban.parser import parse_task


def test_format_entry(when):
    assert format_entry("sam", 'moved from "A" to "B"', when) == '2024-03-01 14:05 | sam moved from "A" to "B"'


def test_format_closed(when):
    assert format_closed("sam", when) == "**Closed**: 2024-03-01 by sam"


def test_append_creates_block():
    task = parse_task("### TASK-001 | A\n**Priority**: P1\n\n")
    append_history(task, "e1")
    assert task.raw == "### TASK-001 | A\n**Priority**: P1\n\n<!-- History:\ne1\n-->"
    assert task.history == ["e1"]


def test_append_inserts_before_closing_marker():
    task = parse_task("### TASK-001 | A\n\n<!-- History:\ne1\n-->\n")
    append_history(task, "e2")
    assert task.raw == "### TASK-001 | A\n\n<!-- History:\ne1\ne2\n-->\n"
    assert task.history == ["e1", "e2"]


def test_append_is_append_only():
    task = parse_task("### TASK-001 | A\n")
    append_history(task, "e1")
    append_history(task, "e2")
    append_history(task, "e3")
    assert parse_task(task.raw).history == ["e1", "e2", "e3"]


def test_append_entry_sharing_closing_line():
    task = parse_task("### TASK-001 | A\n<!-- History:\ne1 -->")
    append_history(task, "e2")
    assert task.raw == "### TASK-001 | A\n<!-- History:\ne1\ne2\n-->"
    assert parse_task(task.raw).history == ["e1", "e2"]


def test_append_expands_single_line_block():
    task = parse_task("### TASK-001 | A\n<!-- History: e1 -->")
    append_history(task, "e2")
    assert task.raw == "### TASK-001 | A\n<!-- History:\ne1\ne2\n-->"


def test_closed_after_last_field():
    task = parse_task("### TASK-001 | A\n\n**Priority**: P1\n**Tags**: x\n\nBody\n\n<!-- History:\ne1\n-->")
    ensure_closed_field(task, "**Closed**: 2024-03-01 by sam")
    lines = task.raw.split("\n")
    assert lines[4] == "**Closed**: 2024-03-01 by sam"
    assert lines[3] == "**Tags**: x"
    assert task.metadata["closed"] == "2024-03-01 by sam"


def test_closed_without_fields_goes_under_header():
    task = parse_task("### TASK-001 | A\nBody")
    ensure_closed_field(task, "**Closed**: 2024-03-01 by sam")
    assert task.raw == "### TASK-001 | A\n**Closed**: 2024-03-01 by sam\nBody"


def test_closed_is_idempotent():
    task = parse_task("### TASK-001 | A\n**Priority**: P1")
    ensure_closed_field(task, "**Closed**: 2024-03-01 by sam")
    ensure_closed_field(task, "**Closed**: 2024-04-01 by kim")
    assert task.raw.count("**Closed**:") == 1
    assert "2024-03-01 by sam" in task.raw


def test_is_terminal():
    assert is_terminal("✅ Done")
    assert not is_terminal("📋 Backlog")
    assert is_terminal("🚢 Shipped", marker="Shipped")


def test_append_closes_unclosed_block():
    task = parse_task("### TASK-001 | A\n<!-- History:\ne1\n")
    append_history(task, "e2")
    assert task.raw == "### TASK-001 | A\n<!-- History:\ne1\ne2\n-->"
    assert task.history == ["e1", "e2"]
