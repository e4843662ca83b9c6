"""Git integration: engine settings from git config, commits after saves."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from git import InvalidGitRepositoryError, NoSuchPathError, Repo

logger = logging.getLogger(__name__)

SECTION = "kanban"

KANBAN_DEFAULTS = {
    "lock-timeout": 30.0,
    "terminal-column": "Done",
    "commit": False,
    "prefix": "",
}


@dataclass
class Settings:
    """Engine settings for one board file."""

    lock_timeout: float | None = 30.0
    terminal_column: str = "Done"
    commit: bool = False
    prefix: str = ""


def _python_key(git_key: str) -> str:
    """Convert git-style key (hyphenated) to Python-style (underscored)."""
    return git_key.replace("-", "_")


def _coerce_value(git_key: str, raw: str) -> Any:
    """Type-coerce kanban section values using defaults."""
    default = KANBAN_DEFAULTS.get(git_key)
    if default is None:
        return raw
    if isinstance(default, bool):
        return raw.lower() in ("true", "yes", "1")
    if isinstance(default, float):
        try:
            value = float(raw)
        except ValueError:
            logger.warning("Ignoring %s.%s = %r, not a number", SECTION, git_key, raw)
            return default
        return value if value > 0 else None
    return raw


def find_repo(path: str | Path) -> Repo | None:
    """Return the repository containing path, or None."""
    path = Path(path)
    start = path if path.is_dir() else path.parent
    try:
        return Repo(start, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return None


def read_settings(path: str | Path) -> Settings:
    """Read the [kanban] section of the git config around path.

    Missing keys, and boards outside any repository, get the defaults. A
    lock-timeout of 0 or less means wait forever.
    """
    values = {_python_key(k): v for k, v in KANBAN_DEFAULTS.items()}
    repo = find_repo(path)
    if repo is not None:
        reader = repo.config_reader()
        if reader.has_section(SECTION):
            for git_k, raw in reader.items(SECTION):
                if git_k in KANBAN_DEFAULTS:
                    values[_python_key(git_k)] = _coerce_value(git_k, raw)
    return Settings(**values)


def write_setting(path: str | Path, key: str, value) -> None:
    """Write one key to the repository's git config. key is git-style."""
    repo = find_repo(path)
    if repo is None:
        raise InvalidGitRepositoryError(str(path))
    writer = repo.config_writer("repository")
    if isinstance(value, bool):
        writer.set_value(SECTION, key, str(value).lower())
    else:
        writer.set_value(SECTION, key, str(value))
    writer.release()


def commit_file(path: str | Path, message: str) -> str | None:
    """Stage and commit one file. Returns the commit hash, or None if no repo."""
    repo = find_repo(path)
    if repo is None:
        logger.warning("%s is not in a git repository, not committing", path)
        return None
    rel = str(Path(path).resolve().relative_to(Path(repo.working_tree_dir).resolve()))
    repo.index.add([rel])
    commit = repo.index.commit(message)
    logger.info("Committed %s as %s", rel, commit.hexsha[:7])
    return commit.hexsha
