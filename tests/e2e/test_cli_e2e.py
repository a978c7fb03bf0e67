from __future__ import annotations

"""
End-to-End (E2E) CLI Tests.

Invokes the entry point script via subprocess and validates exit codes,
stdout rendering, overlay files and the remembered session. The user data
directory is redirected to a temporary home for every run.
"""

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import List

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
SRC_DIR = PROJECT_ROOT / "src"
ENTRY_POINT = SRC_DIR / "treelink" / "main.py"


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def run_cli(home: Path):
    def _run(args: List[str]) -> subprocess.CompletedProcess:
        env = os.environ.copy()
        env["PYTHONPATH"] = str(SRC_DIR) + os.pathsep + env.get("PYTHONPATH", "")
        env["HOME"] = str(home)
        env["USERPROFILE"] = str(home)
        env["LOCALAPPDATA"] = str(home)
        return subprocess.run(
            [sys.executable, str(ENTRY_POINT)] + args,
            env=env,
            capture_output=True,
            text=True,
            encoding="utf-8",
        )
    return _run


def test_renders_default_tree(run_cli, disk_tree: Path) -> None:
    """TC-01: Default ignored folders are skipped and everything starts selected."""
    result = run_cli(["-i", str(disk_tree)])

    assert result.returncode == 0, result.stderr
    assert result.stdout.splitlines() == [
        "[x] project",
        "├── [x] docs",
        "└── [x] src",
        "    ├── [x] app",
        "    └── [x] lib",
    ]


def test_toggles_and_json_output(run_cli, disk_tree: Path) -> None:
    result = run_cli(["-i", str(disk_tree), "--deselect", "src", "--select", "src/app", "--json"])

    assert result.returncode == 0, result.stderr
    overlay = json.loads(result.stdout)
    by_path = {r["path"]: r["selected"] for r in overlay}
    assert by_path[str(disk_tree)] == "mixed"
    assert by_path[os.path.join(str(disk_tree), "src")] == "mixed"
    assert by_path[os.path.join(str(disk_tree), "src", "app")] == "selected"
    assert os.path.join(str(disk_tree), "src", "lib") not in by_path


def test_count_and_custom_ignore(run_cli, disk_tree: Path) -> None:
    result = run_cli(["-i", str(disk_tree), "--ignore", "docs", "--count"])

    # project, .git, objects, node_modules, pkg, src, app, lib
    assert result.returncode == 0, result.stderr
    assert result.stdout.strip() == "8"


def test_unknown_toggle_path_exit_code(run_cli, disk_tree: Path) -> None:
    """TC-02: Unknown folders are reported but the tree is still printed."""
    result = run_cli(["-i", str(disk_tree), "--deselect", "nope", "--deselect", "docs"])

    assert result.returncode == 1
    assert "nope" in result.stderr
    assert "├── [ ] docs" in result.stdout


def test_missing_input_exit_code(run_cli, tmp_path: Path) -> None:
    result = run_cli(["-i", str(tmp_path / "missing")])

    assert result.returncode == 2
    assert "ERROR" in result.stderr


def test_state_file_round_trip(run_cli, disk_tree: Path, tmp_path: Path) -> None:
    """TC-03: A saved overlay restores the same selection and collapse state."""
    state_file = tmp_path / "state.json"
    first = run_cli([
        "-i", str(disk_tree), "--deselect", "docs", "--collapse", "src",
        "--save-state", str(state_file),
    ])
    assert first.returncode == 0, first.stderr
    assert state_file.exists()

    second = run_cli(["-i", str(disk_tree), "--state", str(state_file)])

    assert second.returncode == 0, second.stderr
    assert second.stdout == first.stdout
    assert "└── [x] src (+)" in second.stdout


def test_missing_state_file(run_cli, disk_tree: Path, tmp_path: Path) -> None:
    result = run_cli(["-i", str(disk_tree), "--state", str(tmp_path / "nope.json")])
    assert result.returncode == 2


def test_remembered_session(run_cli, disk_tree: Path, home: Path) -> None:
    """TC-04: --remember stores the path and selection for the next run."""
    first = run_cli(["-i", str(disk_tree), "--deselect", "src/lib", "--remember"])
    assert first.returncode == 0, first.stderr
    assert (home / ".treelink" / "session.json").exists() or (home / "TreeLink" / "session.json").exists()

    second = run_cli([])
    assert second.returncode == 0, second.stderr
    assert second.stdout == first.stdout

    fresh = run_cli(["-i", str(disk_tree), "--use-defaults"])
    assert "[ ] lib" not in fresh.stdout
