"""Handler for 'mdkanban init'."""

from datetime import date

from mdkanban.cli._common import board_path, error, output_json
from mdkanban.engine import load_and_parse, save_document

TEMPLATE = """# {title} Kanban

<!-- Config: Last Task ID: 000 -->

## ⚙️ Configuration
**Board Name**: {title}
**Created**: {created}

## 💡 Ideas
<!-- Parking lot for new ideas -->

## 📋 Backlog
<!-- Ready to work on -->

## 🔨 In Progress
<!-- Currently active -->

## 🚧 Blocked
<!-- Stuck, needs help -->

## 👀 Review
<!-- Awaiting review -->

## ✅ Done
<!-- Completed - shows who closed each task -->
"""


def render_template(title: str, created: date | None = None) -> str:
    return TEMPLATE.format(title=title, created=(created or date.today()).isoformat())


def init_board(args) -> int:
    """Create a new board file from the standard template."""
    path = board_path(args)

    if path.exists() and not args.force:
        doc = load_and_parse(path)
        columns = [c.title for c in doc.columns]
        if args.json:
            output_json({"path": str(path), "columns": columns, "created": False})
        else:
            print(f"Board already exists at {path}")
        return 0

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        save_document(path, render_template(args.title))
    except OSError as e:
        error(f"Cannot write board {path}: {e.strerror or e}", args.json)

    columns = [c.title for c in load_and_parse(path).columns]
    if args.json:
        output_json({"path": str(path), "columns": columns, "created": True})
    else:
        print(f"Initialized board at {path}")
        print(f"Columns: {', '.join(columns)}")

    return 0
