from __future__ import annotations

"""
Unit tests for the entry point supervisor.
"""

import sys
from typing import Generator
from unittest.mock import patch

import pytest

from treelink import main as entry


@pytest.fixture(autouse=True)
def restore_excepthook() -> Generator[None, None, None]:
    original = sys.excepthook
    yield
    sys.excepthook = original


def test_main_delegates_to_cli() -> None:
    with patch("treelink.interface.cli.app.main", return_value=0) as cli_main:
        assert entry.main(["-i", "/x"]) == 0
    cli_main.assert_called_once_with(["-i", "/x"])
    assert sys.excepthook is entry.global_exception_handler


def test_unhandled_exception_exits_with_one(capsys) -> None:
    with patch("treelink.interface.cli.app.main", side_effect=RuntimeError("boom")):
        with pytest.raises(SystemExit) as exc:
            entry.main([])

    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert "CRITICAL ERROR (TREELINK CLI)" in err
    assert "RuntimeError: boom" in err
