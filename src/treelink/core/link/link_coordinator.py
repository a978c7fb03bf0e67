from __future__ import annotations

"""
Tree Link Coordinator.

Keeps groups of tree instances pointed at one shared root collection. The
first id of a group is its leader; the group's shared collection is the one
the leader currently exposes, and every other member exposes that same
object. When any member publishes a new collection (a reload, a refresh),
it becomes the group's shared state and is broadcast to the peers.

Broadcasting makes each peer publish in turn. A coordinator-wide
propagating flag, raised for the duration of every fan-out, keeps those
secondary structure-changed events from being propagated again.

Groups are kept as an ordered list of ordered id lists with linear lookups.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence, Set

from treelink.core.events import EventHook
from treelink.core.tree.root_collection import RootCollection
from treelink.core.tree.tree_instance import TreeInstance

logger = logging.getLogger(__name__)


class UnregisteredTreeError(KeyError):
    """Raised when an operation names a tree id that was never registered."""

    def __init__(self, tree_id: str) -> None:
        super().__init__(tree_id)
        self.tree_id = tree_id

    def __str__(self) -> str:
        return f"Tree '{self.tree_id}' is not registered with the link coordinator."


class LinkCoordinator:
    """
    Registry of tree instances and of the link groups between them.

    Attributes:
        links_changed: Hook fired once after every call that changed the
            link groups.
    """

    def __init__(self) -> None:
        self._instances: Dict[str, TreeInstance] = {}
        self._groups: List[List[str]] = []
        # Shared collection per group, keyed by the group's leader id
        self._shared: Dict[str, RootCollection] = {}
        self._propagating = False

        self.links_changed = EventHook("links_changed")

    # -------------------------------------------------------------------------
    # REGISTRATION
    # -------------------------------------------------------------------------

    def register(self, tree_id: str, instance: TreeInstance) -> None:
        """
        Register `instance` under `tree_id`, replacing any earlier registration.

        If `tree_id` already belongs to a link group, the new instance is
        brought in line with it: a new leader re-establishes the group's
        shared state, any other member adopts it.
        The replaced instance leaves the group with its own copy of the tree.
        """
        previous = self._instances.get(tree_id)
        if previous is not None and previous is not instance:
            previous.structure_changed.unsubscribe(self._on_structure_changed)
            if self._find_group(tree_id) is not None:
                with self._propagation():
                    previous.unlink_and_clone()

        instance.id = tree_id
        self._instances[tree_id] = instance
        instance.structure_changed.subscribe(self._on_structure_changed)

        group = self._find_group(tree_id)
        if group is None:
            return
        if group[0] == tree_id:
            self._establish_shared_state(group)
        else:
            self._update_group_state(group)

    def get_instance(self, tree_id: str) -> TreeInstance:
        return self._require(tree_id)

    @property
    def is_propagating(self) -> bool:
        return self._propagating

    # -------------------------------------------------------------------------
    # LINK MANAGEMENT
    # -------------------------------------------------------------------------

    def create_link(self, first_id: str, second_id: str) -> None:
        """
        Link two trees.

        - Both unlinked: a new group [first, second] led by `first`.
        - One linked: the other joins that group and adopts its shared state.
        - Same group: nothing happens.
        - Different groups: the groups merge (first's members, then
          second's), led by the first id of the merged group.

        Raises:
            UnregisteredTreeError: If either id is unknown.
            ValueError: If both ids are the same.
        """
        self._require(first_id)
        self._require(second_id)
        if first_id == second_id:
            raise ValueError(f"Cannot link tree '{first_id}' to itself.")

        group1 = self._find_group(first_id)
        group2 = self._find_group(second_id)

        if group1 is not None and group1 is group2:
            return

        if group1 is None and group2 is None:
            new_group = [first_id, second_id]
            self._groups.append(new_group)
            self._establish_shared_state(new_group)
            logger.info(f"Linked '{first_id}' and '{second_id}' (leader '{first_id}').")
        elif group1 is not None and group2 is None:
            group1.append(second_id)
            self._broadcast(group1, [second_id])
            logger.info(f"Tree '{second_id}' joined the group led by '{group1[0]}'.")
        elif group1 is None and group2 is not None:
            group2.append(first_id)
            self._broadcast(group2, [first_id])
            logger.info(f"Tree '{first_id}' joined the group led by '{group2[0]}'.")
        elif group1 is not None and group2 is not None:
            merged = group1 + [m for m in group2 if m not in group1]
            self._groups.remove(group1)
            self._groups.remove(group2)
            self._shared.pop(group1[0], None)
            self._shared.pop(group2[0], None)
            self._groups.append(merged)
            self._establish_shared_state(merged)
            logger.info(f"Merged link groups into {merged} (leader '{merged[0]}').")

        self.links_changed.emit()

    def remove_link(self, tree_id: str) -> None:
        """
        Take `tree_id` out of its link group.

        The tree first receives an independent copy of its current tree. A
        group left with a single member is dissolved and that member is
        unlinked the same way. If the leader leaves a group that survives,
        the next member leads and the shared state is re-established from
        its tree.

        Raises:
            UnregisteredTreeError: If the id is unknown.
        """
        instance = self._require(tree_id)
        group = self._find_group(tree_id)
        if group is None:
            return

        leader_id = group[0]
        with self._propagation():
            instance.unlink_and_clone()
        group.remove(tree_id)

        if len(group) < 2:
            for remaining_id in group:
                remaining = self._instances.get(remaining_id)
                if remaining is not None:
                    with self._propagation():
                        remaining.unlink_and_clone()
            self._groups.remove(group)
            self._shared.pop(leader_id, None)
            logger.info(f"Link group led by '{leader_id}' dissolved.")
        elif tree_id == leader_id:
            self._shared.pop(leader_id, None)
            self._establish_shared_state(group)
            logger.info(f"Leadership passed from '{leader_id}' to '{group[0]}'.")
        else:
            logger.info(f"Tree '{tree_id}' left the group led by '{leader_id}'.")

        self.links_changed.emit()

    def load_groups(self, groups: Sequence[Sequence[str]]) -> None:
        """
        Replace every link group, typically when restoring a saved session.

        Currently linked trees are first unlinked with an independent copy.
        Duplicate ids (within or across groups) keep their first occurrence,
        and groups left with fewer than two members are dropped. Shared state
        is then established for each group from its leader.
        """
        with self._propagation():
            for group in self._groups:
                for member_id in group:
                    member = self._instances.get(member_id)
                    if member is not None:
                        member.unlink_and_clone()

        self._groups = _sanitize_groups(groups)
        self._shared.clear()

        for group in self._groups:
            self._establish_shared_state(group)

        logger.debug(f"Link groups loaded: {self._groups}")
        self.links_changed.emit()

    # -------------------------------------------------------------------------
    # QUERIES
    # -------------------------------------------------------------------------

    def get_linked_peers(self, tree_id: str) -> List[str]:
        """Return the other ids of `tree_id`'s group, or [] if unlinked."""
        group = self._find_group(tree_id)
        if group is None:
            return []
        return [m for m in group if m != tree_id]

    def get_link_groups(self) -> List[List[str]]:
        """Copy of the link groups, in the persisted list-of-lists format."""
        return [list(g) for g in self._groups]

    def is_linked(self, tree_id: str) -> bool:
        return self._find_group(tree_id) is not None

    def get_leader(self, tree_id: str) -> Optional[str]:
        group = self._find_group(tree_id)
        return group[0] if group is not None else None

    def get_shared_collection(self, tree_id: str) -> Optional[RootCollection]:
        """The shared collection of `tree_id`'s group, if any."""
        group = self._find_group(tree_id)
        if group is None:
            return None
        return self._shared.get(group[0])

    # -------------------------------------------------------------------------
    # SHARED STATE
    # -------------------------------------------------------------------------

    def _establish_shared_state(self, group: List[str]) -> None:
        """Record the leader's collection as shared and push it to all members."""
        if not group:
            return
        leader = self._instances.get(group[0])
        if leader is None:
            logger.debug(f"Leader '{group[0]}' not registered yet; shared state deferred.")
            return
        self._shared[group[0]] = leader.roots
        self._broadcast(group, group[1:])

    def _update_group_state(self, group: List[str]) -> None:
        """Push the existing shared state to every member, establishing it if missing."""
        if group[0] not in self._shared:
            self._establish_shared_state(group)
            return
        self._broadcast(group, group[1:])

    def _broadcast(self, group: List[str], targets: Sequence[str]) -> None:
        shared = self._shared.get(group[0])
        if shared is None:
            self._establish_shared_state(group)
            return

        leader = self._instances[group[0]]
        with self._propagation():
            for member_id in targets:
                member = self._instances.get(member_id)
                if member is None or member.roots is shared:
                    continue
                member.adopt_shared(shared, leader.current_path)

    def _on_structure_changed(self, instance: TreeInstance) -> None:
        if self._propagating:
            return
        group = self._find_group(instance.id)
        if group is None:
            return

        logger.debug(f"Tree '{instance.id}' published a new tree; mirroring to {len(group) - 1} peer(s).")
        self._shared[group[0]] = instance.roots
        with self._propagation():
            for member_id in group:
                member = self._instances.get(member_id)
                if member is None or member is instance:
                    continue
                member.adopt_shared(instance.roots, instance.current_path)

    @contextmanager
    def _propagation(self) -> Iterator[None]:
        previous = self._propagating
        self._propagating = True
        try:
            yield
        finally:
            self._propagating = previous

    # -------------------------------------------------------------------------
    # LOOKUP HELPERS
    # -------------------------------------------------------------------------

    def _find_group(self, tree_id: str) -> Optional[List[str]]:
        for group in self._groups:
            if tree_id in group:
                return group
        return None

    def _require(self, tree_id: str) -> TreeInstance:
        instance = self._instances.get(tree_id)
        if instance is None:
            raise UnregisteredTreeError(tree_id)
        return instance


def _sanitize_groups(groups: Sequence[Sequence[str]]) -> List[List[str]]:
    seen: Set[str] = set()
    clean: List[List[str]] = []
    for raw in groups:
        group: List[str] = []
        for member_id in raw:
            if not isinstance(member_id, str) or not member_id or member_id in seen:
                continue
            seen.add(member_id)
            group.append(member_id)
        if len(group) >= 2:
            clean.append(group)
        elif group:
            logger.warning(f"Discarded link group {list(raw)}: fewer than two distinct members.")
    return clean
