from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Loads one folder tree, restores its selection (from an overlay file or the
remembered session), applies the requested toggles and prints the result
as an ASCII tree, a JSON overlay or a count.
"""

import json
import os
import sys
from typing import Any, Dict, List, Optional

from treelink.core.services.validator import validate_session
from treelink.core.tree.selection_node import SelectionNode
from treelink.core.tree.tree_instance import TreeInstance
from treelink.core.tree.tree_renderer import render_selection_tree
from treelink.core.tree.tree_source import FileSystemTreeSource
from treelink.domain.selection_models import SelectionState, overlay_to_json
from treelink.domain.session import (
    get_default_session,
    load_session_state,
    save_session_state,
)
from treelink.infra.fs import normalize_path
from treelink.infra.logging import LoggingConfig, configure_logging, get_logger
from treelink.interface.cli import args as cli_args

logger = get_logger(__name__)

CLI_TREE_ID = "cli"

EXIT_OK = 0
EXIT_UNKNOWN_PATH = 1
EXIT_MISSING_INPUT = 2

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the CLI workflow.

    Args:
        argv: Command line arguments. Defaults to sys.argv.

    Returns:
        int: 0 on success, 1 if a toggle named an unknown folder, 2 if the
        input directory or the state file is missing.
    """
    if sys.platform == "win32" and hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")

    # 1. Arguments and logging
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    configure_logging(LoggingConfig(level="DEBUG" if args.debug else "WARNING"))
    logger.debug("CLI execution initiated.")

    # 2. Session (stored or defaults) with command-line overrides
    base = get_default_session() if args.use_defaults else load_session_state()
    remembered_path = normalize_path(base.get("source_path"))
    raw = dict(base)
    raw.update(cli_args.args_to_overrides(args))

    session, warnings = validate_session(raw)
    for w in warnings:
        logger.warning(f"Session constraint: {w}")

    # 3. Pre-flight input verification
    source = FileSystemTreeSource()
    root_path = source.resolve(session["source_path"])
    if root_path is None:
        _fail(f"Input directory does not exist: '{session['source_path']}'")
        return EXIT_MISSING_INPUT

    overlay: Optional[List[Dict[str, Any]]] = None
    if args.state_file:
        overlay = _read_overlay_file(args.state_file)
        if overlay is None:
            return EXIT_MISSING_INPUT
    elif remembered_path == root_path:
        overlay = session["tree_states"].get(CLI_TREE_ID)

    # 4. Build and edit
    tree = TreeInstance(source, CLI_TREE_ID, session["ignored_folders"])
    tree.load(root_path, overlay)

    exit_code = EXIT_OK
    for action, raw_target in cli_args.args_to_toggles(args):
        node = _resolve_target(tree, root_path, raw_target)
        if node is None:
            logger.warning(f"Unknown folder '{raw_target}' (not under '{root_path}'). Skipped.")
            exit_code = EXIT_UNKNOWN_PATH
            continue
        _apply_toggle(node, action)

    state = overlay_to_json(tree.extract_state())

    # 5. Persistence
    if args.save_state:
        try:
            _write_json(args.save_state, state)
        except OSError as e:
            _fail(f"Cannot write state file '{args.save_state}': {e}")
            return EXIT_MISSING_INPUT

    if args.remember:
        stored = dict(session)
        stored["source_path"] = root_path
        stored["tree_states"] = dict(session["tree_states"])
        stored["tree_states"][CLI_TREE_ID] = state
        save_session_state(stored)

    # 6. Output rendering
    if args.json_output:
        print(json.dumps(state, ensure_ascii=False, indent=2))
    elif args.count:
        print(tree.selected_node_count())
    else:
        for line in render_selection_tree(tree.root, expand_all=args.expand_all):
            print(line)

    return exit_code

# -----------------------------------------------------------------------------
# TOGGLES
# -----------------------------------------------------------------------------

def _resolve_target(tree: TreeInstance, root_path: str, target: str) -> Optional[SelectionNode]:
    """Find a folder given relative to the root or as an absolute path."""
    candidate = target.strip()
    if not os.path.isabs(candidate):
        candidate = os.path.join(root_path, candidate)
    return tree.find(os.path.normpath(candidate))


def _apply_toggle(node: SelectionNode, action: str) -> None:
    if action == cli_args.ACTION_SELECT:
        node.set_selected(SelectionState.SELECTED)
    elif action == cli_args.ACTION_DESELECT:
        if node.is_root:
            logger.warning("The root folder cannot be deselected. Skipped.")
        node.set_selected(SelectionState.UNSELECTED)
    elif action == cli_args.ACTION_COLLAPSE:
        node.set_expanded(False)

# -----------------------------------------------------------------------------
# FILE I/O
# -----------------------------------------------------------------------------

def _read_overlay_file(path: str) -> Optional[List[Dict[str, Any]]]:
    """Read an overlay list; report and return None if unusable."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        _fail(f"Cannot read state file '{path}': {e}")
        return None

    clean, warnings = validate_session({"tree_states": {CLI_TREE_ID: data}})
    for w in warnings:
        logger.warning(f"State file: {w}")
    return clean["tree_states"].get(CLI_TREE_ID, [])


def _write_json(path: str, data: Any) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def _fail(msg: str) -> None:
    logger.error(msg)
    print(f"ERROR: {msg}", file=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
