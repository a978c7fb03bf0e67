from __future__ import annotations

"""
Unit tests for SelectionNode.

Verifies:
1. Downward cascade and upward tri-state recomputation.
2. Root protection and idempotent toggles.
3. Pre-order enumeration, lookup and detached cloning.
4. Observer notification counts.
"""

import random
from typing import List

import pytest

from treelink.core.tree.selection_node import (
    CHANGE_EXPANSION,
    CHANGE_SELECTION,
    SelectionNode,
)
from treelink.domain.selection_models import FolderState, SelectionState

SEL = SelectionState.SELECTED
UNSEL = SelectionState.UNSELECTED
MIXED = SelectionState.MIXED


def build_proj() -> SelectionNode:
    """/proj with leaves src and docs, all selected."""
    root = SelectionNode("proj", "/proj")
    root.add_child(SelectionNode("src", "/proj/src"))
    root.add_child(SelectionNode("docs", "/proj/docs"))
    return root


def build_deep() -> SelectionNode:
    root = SelectionNode("r", "/r")
    a = root.add_child(SelectionNode("a", "/r/a"))
    a1 = a.add_child(SelectionNode("a1", "/r/a/a1"))
    a1.add_child(SelectionNode("x", "/r/a/a1/x"))
    a1.add_child(SelectionNode("y", "/r/a/a1/y"))
    a.add_child(SelectionNode("a2", "/r/a/a2"))
    b = root.add_child(SelectionNode("b", "/r/b"))
    b.add_child(SelectionNode("b1", "/r/b/b1"))
    return root


def assert_consistent(root: SelectionNode) -> None:
    for node in root.enumerate_subtree():
        if not node.children:
            assert node.state is not MIXED
            continue
        states = {c.state for c in node.children}
        if states == {SEL}:
            assert node.state is SEL, node
        elif states == {UNSEL}:
            assert node.state is UNSEL, node
        else:
            assert node.state is MIXED, node


# -----------------------------------------------------------------------------
# TRI-STATE
# -----------------------------------------------------------------------------

def test_proj_scenario() -> None:
    """TC-01: Deselecting and reselecting leaves drives the root through MIXED and UNSELECTED."""
    root = build_proj()
    src, docs = root.children[0], root.children[1]

    docs.set_selected(UNSEL)
    assert root.state is MIXED

    src.set_selected(UNSEL)
    assert root.state is UNSEL

    src.set_selected(SEL)
    assert root.state is MIXED


def test_cascade_reaches_every_descendant() -> None:
    """TC-02: A toggle sets the whole subtree."""
    root = build_deep()
    a = root.find("/r/a")
    a.set_selected(UNSEL)

    assert all(n.state is UNSEL for n in a.enumerate_subtree())
    assert root.state is MIXED
    assert root.find("/r/b").state is SEL


def test_bubbling_through_several_levels() -> None:
    """TC-03: A leaf change is reflected up to the root."""
    root = build_deep()
    root.find("/r/a/a1/x").set_selected(UNSEL)

    assert root.find("/r/a/a1").state is MIXED
    assert root.find("/r/a").state is MIXED
    assert root.state is MIXED
    assert root.find("/r/a/a1/y").state is SEL


def test_random_toggle_sequence_keeps_tree_consistent() -> None:
    """TC-04: Tri-state stays consistent after arbitrary toggle sequences."""
    rng = random.Random(42)
    root = build_deep()
    nodes = [n for n in root.enumerate_subtree() if not n.is_root]

    for _ in range(200):
        node = rng.choice(nodes)
        node.set_selected(rng.choice([SEL, UNSEL]))
        assert_consistent(root)


def test_root_cannot_be_deselected_directly() -> None:
    """TC-05: Direct root deselection is a silent no-op."""
    root = build_proj()
    root.set_selected(UNSEL)

    assert root.state is SEL
    assert all(c.state is SEL for c in root.children)


def test_root_deselect_is_ignored_when_mixed() -> None:
    root = build_deep()
    root.find("/r/a/a1/x").set_selected(UNSEL)
    before = [(n.path, n.state) for n in root.enumerate_subtree()]
    assert root.state is MIXED

    root.set_selected(UNSEL)

    assert [(n.path, n.state) for n in root.enumerate_subtree()] == before
    assert root.state is MIXED
    assert root.find("/r/a/a1/y").state is SEL


def test_root_can_be_selected_directly() -> None:
    root = build_proj()
    root.children[1].set_selected(UNSEL)
    root.set_selected(SEL)

    assert root.state is SEL
    assert all(c.state is SEL for c in root.children)


def test_mixed_is_rejected_as_target() -> None:
    """TC-06: MIXED is derived and cannot be requested."""
    root = build_proj()
    with pytest.raises(ValueError):
        root.children[0].set_selected(MIXED)


def test_set_selected_is_idempotent() -> None:
    """TC-07: Repeating a toggle changes nothing and notifies once."""
    root = build_proj()
    events: List[str] = []
    root.bind_observer(events.append)
    docs = root.children[1]

    docs.set_selected(UNSEL)
    snapshot = [(n.path, n.state) for n in root.enumerate_subtree()]
    docs.set_selected(UNSEL)

    assert [(n.path, n.state) for n in root.enumerate_subtree()] == snapshot
    assert events == [CHANGE_SELECTION]


def test_recompute_reports_change() -> None:
    root = build_proj()
    root.children[0]._state = UNSEL  # simulate a raw edit

    assert root.recompute_from_children() is True
    assert root.state is MIXED
    assert root.recompute_from_children() is False
    assert root.children[0].recompute_from_children() is False


# -----------------------------------------------------------------------------
# STRUCTURE
# -----------------------------------------------------------------------------

def test_enumerate_subtree_is_preorder_and_restartable() -> None:
    root = build_deep()
    expected = ["/r", "/r/a", "/r/a/a1", "/r/a/a1/x", "/r/a/a1/y", "/r/a/a2", "/r/b", "/r/b/b1"]

    assert [n.path for n in root.enumerate_subtree()] == expected
    assert [n.path for n in root.enumerate_subtree()] == expected


def test_structure_helpers() -> None:
    root = build_deep()
    x = root.find("/r/a/a1/x")

    assert root.is_root and not x.is_root
    assert x.is_leaf and not root.is_leaf
    assert x.root is root
    assert x.depth == 3
    assert root.find("/r/missing") is None


def test_clone_is_detached_deep_copy() -> None:
    """TC-08: Clones carry states but share no node objects."""
    root = build_deep()
    root.find("/r/b").set_selected(UNSEL)
    root.find("/r/a/a2").set_expanded(False)

    copy = root.clone()
    original_nodes = list(root.enumerate_subtree())
    copied_nodes = list(copy.enumerate_subtree())

    assert [(n.path, n.state, n.expanded) for n in copied_nodes] == \
           [(n.path, n.state, n.expanded) for n in original_nodes]
    assert not {id(n) for n in original_nodes} & {id(n) for n in copied_nodes}
    assert copy.parent is None

    copy.find("/r/a").set_selected(UNSEL)
    assert root.find("/r/a").state is SEL


# -----------------------------------------------------------------------------
# EXPANSION & PERSISTENCE SUPPORT
# -----------------------------------------------------------------------------

def test_expansion_notifications() -> None:
    root = build_deep()
    events: List[str] = []
    root.bind_observer(events.append)

    root.find("/r/a").set_expanded(False)
    root.find("/r/a").set_expanded(False)
    root.set_expanded_recursive(False)
    root.set_expanded_recursive(False)

    assert events == [CHANGE_EXPANSION, CHANGE_EXPANSION]
    assert not any(n.expanded for n in root.enumerate_subtree())


def test_toggle_does_not_change_expansion() -> None:
    root = build_deep()
    root.find("/r/a").set_expanded(False)
    root.find("/r/a").set_selected(UNSEL)
    root.find("/r/a").set_selected(SEL)

    assert root.find("/r/a").expanded is False
    assert root.find("/r/a/a1").expanded is True


def test_apply_state_without_cascade() -> None:
    root = build_proj()
    events: List[str] = []
    root.bind_observer(events.append)

    root.children[0].apply_state(FolderState("/proj/src", UNSEL, expanded=False))

    assert root.children[0].state is UNSEL
    assert root.children[0].expanded is False
    assert root.state is SEL  # not recomputed until normalize()
    assert events == []

    root.normalize()
    assert root.state is MIXED


def test_apply_state_keeps_selection_for_null_and_leaf_mixed() -> None:
    root = build_proj()
    src = root.children[0]

    src.apply_state(FolderState("/proj/src", None, expanded=False))
    assert src.state is SEL
    assert src.expanded is False

    src.apply_state(FolderState("/proj/src", MIXED))
    assert src.state is SEL
