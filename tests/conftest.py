"""Shared fixtures: a sample board in memory and on disk."""

from datetime import datetime, timezone

import pytest

BOARD = """# Acme Kanban

<!-- Config: Last Task ID: 003 -->

Board notes written by hand.

## ⚙️ Configuration
**Board Name**: Acme
**Created**: 2024-01-01

## 📋 Backlog
<!-- Ready to work on -->

### TASK-001 | Write docs

**Priority**: P1 | **Project**: acme | **Assigned**: alice
**Created**: 2024-01-02
**Tags**: docs, writing

Draft the README.

<!-- History:
2024-01-02 09:00 | alice created in "📋 Backlog"
-->

### TASK-002 | Fix login
**Priority**: P0 | **Creator**: bob
**Estimate**: 3

## 🔨 In Progress
<!-- Currently active -->

### TASK-003 | Ship release

**Priority**: P2

Some notes here.
  indented line

## ✅ Done
<!-- Completed -->
"""

WHEN = datetime(2024, 3, 1, 14, 5, tzinfo=timezone.utc)


@pytest.fixture
def board_text():
    return BOARD


@pytest.fixture
def when():
    return WHEN


@pytest.fixture
def board_file(tmp_path):
    """The sample board written to a temp file."""
    path = tmp_path / "KANBAN.md"
    path.write_text(BOARD, encoding="utf-8")
    return path
