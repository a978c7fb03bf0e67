from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema and translates the parsed namespace into
session overrides and a list of toggle operations.
"""

import argparse
from typing import Any, Dict, List, Optional, Tuple

ACTION_SELECT = "select"
ACTION_DESELECT = "deselect"
ACTION_COLLAPSE = "collapse"

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="treelink",
        description="Show and edit the tri-state folder selection of a directory tree.",
    )

    # --- Source ---
    p.add_argument(
        "-i", "--input",
        dest="input_path",
        default=None,
        help="Root directory to load.",
    )
    p.add_argument(
        "--ignore",
        dest="ignored_folders",
        default=None,
        help="Comma-separated folder names to skip (replaces the stored list).",
    )
    p.add_argument(
        "--state",
        dest="state_file",
        default=None,
        help="JSON overlay file to restore before applying toggles.",
    )

    # --- Toggles (applied in command-line order) ---
    p.add_argument(
        "--select",
        dest="toggles",
        action="append",
        type=lambda v: (ACTION_SELECT, v),
        default=[],
        metavar="PATH",
        help="Select a folder and its subtree. Repeatable.",
    )
    p.add_argument(
        "--deselect",
        dest="toggles",
        action="append",
        type=lambda v: (ACTION_DESELECT, v),
        metavar="PATH",
        help="Deselect a folder and its subtree. Repeatable.",
    )
    p.add_argument(
        "--collapse",
        dest="toggles",
        action="append",
        type=lambda v: (ACTION_COLLAPSE, v),
        metavar="PATH",
        help="Collapse a folder. Repeatable.",
    )

    # --- Output ---
    p.add_argument(
        "--expand-all",
        action="store_true",
        help="Render collapsed folders with their children.",
    )
    fmt = p.add_mutually_exclusive_group()
    fmt.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the selection overlay as JSON instead of the tree.",
    )
    fmt.add_argument(
        "--count",
        action="store_true",
        help="Print the number of selected or partially selected folders.",
    )
    p.add_argument(
        "--save-state",
        dest="save_state",
        default=None,
        help="Write the resulting overlay to a JSON file.",
    )

    # --- Session ---
    p.add_argument(
        "--remember",
        action="store_true",
        help="Store the path, ignored folders and selection in the session file.",
    )
    p.add_argument(
        "--use-defaults",
        action="store_true",
        help="Ignore the stored session.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Session fields set on the command line."""
    overrides: Dict[str, Any] = {}
    if args.input_path:
        overrides["source_path"] = args.input_path
    if args.ignored_folders is not None:
        overrides["ignored_folders"] = _split_csv(args.ignored_folders)
    return overrides


def args_to_toggles(args: argparse.Namespace) -> List[Tuple[str, str]]:
    """(action, path) pairs in the order they were given."""
    return [(action, path) for action, path in (args.toggles or []) if path.strip()]

# -----------------------------------------------------------------------------
# HELPERS
# -----------------------------------------------------------------------------

def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    parts = [x.strip() for x in value.split(",")]
    return [x for x in parts if x]
