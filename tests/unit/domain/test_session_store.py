from __future__ import annotations

"""
Unit tests for session persistence.

Verifies:
1. Default session generation.
2. Resilience against missing and corrupted files.
3. Save/Load and preset slots without touching real user data.
"""

import json
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from treelink.domain import session as store
from treelink.domain.constants import CURRENT_SESSION_VERSION, DEFAULT_IGNORED_FOLDERS


@pytest.fixture
def mock_user_data_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Redirect the user data directory to a temporary folder."""
    data_dir = tmp_path / "TreeLink"
    data_dir.mkdir()
    with patch("treelink.domain.session.get_user_data_dir", return_value=str(data_dir)):
        yield data_dir


def test_default_session() -> None:
    state = store.get_default_session()

    assert state["version"] == CURRENT_SESSION_VERSION
    assert state["ignored_folders"] == DEFAULT_IGNORED_FOLDERS
    assert state["ignored_folders"] is not DEFAULT_IGNORED_FOLDERS
    assert state["tree_states"] == {}
    assert state["link_groups"] == []


def test_load_missing_file_returns_defaults(mock_user_data_dir: Path) -> None:
    assert store.load_session_state() == store.get_default_session()


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", ""])
def test_load_corrupted_file_returns_defaults(mock_user_data_dir: Path, content: str) -> None:
    """TC-01: Unreadable files never raise."""
    (mock_user_data_dir / store.SESSION_FILE_NAME).write_text(content, encoding="utf-8")

    assert store.load_session_state() == store.get_default_session()


def test_save_and_load_round_trip(mock_user_data_dir: Path) -> None:
    state = store.get_default_session()
    state["source_path"] = "/proj"
    state["tree_states"] = {"file_content": [{"path": "/proj", "selected": "mixed", "expanded": True}]}
    state["link_groups"] = [["file_content", "tree_generator"]]
    state["version"] = "0.0.1"

    assert store.save_session_state(state) is True

    raw = json.loads((mock_user_data_dir / "session.json").read_text(encoding="utf-8"))
    assert raw["version"] == CURRENT_SESSION_VERSION

    loaded = store.load_session_state()
    assert loaded["source_path"] == "/proj"
    assert loaded["tree_states"] == state["tree_states"]
    assert loaded["link_groups"] == state["link_groups"]


def test_load_ignores_unknown_keys(mock_user_data_dir: Path) -> None:
    (mock_user_data_dir / "session.json").write_text(
        json.dumps({"source_path": "/x", "theme": "dark"}), encoding="utf-8"
    )

    loaded = store.load_session_state()

    assert loaded["source_path"] == "/x"
    assert "theme" not in loaded


def test_save_failure_is_reported_not_raised(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    assert store.save_session_state({}, str(blocker / "session.json")) is False


def test_explicit_path(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "custom.json"
    store.save_session_state({"source_path": "/custom"}, str(target))

    assert store.load_session_state(str(target))["source_path"] == "/custom"


# -----------------------------------------------------------------------------
# PRESETS
# -----------------------------------------------------------------------------

def test_preset_slots(mock_user_data_dir: Path) -> None:
    """TC-02: Presets are stored per slot and report their names."""
    state = store.get_default_session()
    state["preset_name"] = "Backend"

    assert store.load_preset(1) is None
    assert store.preset_exists(1) is False

    store.save_preset(state, 1)

    assert (mock_user_data_dir / "session_preset_01.json").exists()
    assert store.preset_exists(1) is True
    assert store.get_preset_name(1) == "Backend"
    assert store.get_preset_name(2) == ""
    assert store.load_preset(1)["preset_name"] == "Backend"


def test_corrupted_preset_returns_defaults(mock_user_data_dir: Path) -> None:
    (mock_user_data_dir / "session_preset_03.json").write_text("garbage", encoding="utf-8")

    assert store.load_preset(3) == store.get_default_session()


@pytest.mark.parametrize("slot", [0, 6, -1, "1"])
def test_invalid_preset_slot(slot) -> None:
    with pytest.raises(ValueError):
        store.get_preset_file(slot)


def test_preset_write_failure_is_raised(mock_user_data_dir: Path) -> None:
    with patch("treelink.domain.session._write_json", side_effect=PermissionError("denied")):
        with pytest.raises(OSError):
            store.save_preset(store.get_default_session(), 2)
