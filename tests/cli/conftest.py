"""Shared fixtures for CLI tests."""

from argparse import Namespace

import pytest


@pytest.fixture
def make_args(board_file):
    """Build handler args against the sample board, overriding as needed."""

    def _make(**kwargs):
        defaults = dict(file=str(board_file), json=False, prefix=None, verbose=False, actor="tester")
        defaults.update(kwargs)
        return Namespace(**defaults)

    return _make
