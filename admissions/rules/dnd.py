"""Drag and drop over the rule tree.

``DragCoordinator`` turns pointer events into a single move applied through
the mutation functions. Nothing changes while a drag is in progress; the
tree is replaced once, on a legal release.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from admissions.core.config import get_settings
from admissions.rules.mutations import find_item_by_id, move_item
from admissions.rules.tree import Group, LeafRule, is_group, iter_nodes

logger = logging.getLogger(__name__)


def can_drop_item(dragging: Group | LeafRule, target: Group | LeafRule) -> bool:
    """Whether ``dragging`` may be dropped on ``target``.

    A group may not be dropped onto itself or onto any node in its own
    subtree. Leaf rules have no such restriction.
    """
    if not is_group(dragging):
        return True
    return all(node.id != target.id for node in iter_nodes(dragging))


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    CANCELLED = "cancelled"


class DropStatus(str, Enum):
    """How a drag ended."""

    COMMITTED = "committed"
    UNCHANGED = "unchanged"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


@dataclass
class DropOutcome:
    status: DropStatus
    dragged_id: str | None = None
    target_id: str | None = None
    reason: str | None = None

    @property
    def committed(self) -> bool:
        return self.status == DropStatus.COMMITTED


class DragCoordinator:
    """Sequences pointer events into tree moves.

    States run IDLE -> DRAGGING -> IDLE on a commit, or
    IDLE -> DRAGGING -> CANCELLED on a cancelled, rejected or no-op drop;
    the next press returns a cancelled coordinator to IDLE.

    Args:
        get_root: returns the current root group
        commit: receives the new root after a move that changed the tree
        activation_distance: pointer travel (pixels) before a press
            becomes a drag; defaults to ``Settings.drag_activation_distance``
    """

    def __init__(
        self,
        get_root: Callable[[], Group],
        commit: Callable[[Group], None],
        activation_distance: float | None = None,
    ):
        self._get_root = get_root
        self._commit = commit
        if activation_distance is None:
            activation_distance = get_settings().drag_activation_distance
        self.activation_distance = activation_distance
        self._reset()

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self.dragged_id: str | None = None
        self.over_id: str | None = None
        self._origin: tuple[float, float] | None = None
        self._pressed_id: str | None = None

    @property
    def drop_allowed(self) -> bool:
        """Whether releasing now would be a legal drop (overlay feedback)."""
        if self.state != DragState.DRAGGING or self.over_id is None:
            return False
        if self.over_id == self.dragged_id:
            return False
        root = self._get_root()
        dragged = find_item_by_id(root, self.dragged_id)
        target = find_item_by_id(root, self.over_id)
        if dragged is None or target is None:
            return False
        return can_drop_item(dragged[0], target[0])

    def pointer_down(self, node_id: str, x: float, y: float) -> bool:
        """Press on a node. Returns False if the node cannot be dragged."""
        if self.state == DragState.DRAGGING:
            logger.debug("pointer_down ignored while dragging %s", self.dragged_id)
            return False
        self._reset()
        root = self._get_root()
        found = find_item_by_id(root, node_id)
        if found is None or not found[1]:
            logger.debug("Node %r is not draggable", node_id)
            return False
        self._pressed_id = node_id
        self._origin = (x, y)
        return True

    def pointer_move(self, x: float, y: float, over_id: str | None = None) -> DragState:
        """Track the pointer; starts the drag once it passes the threshold."""
        if self.state == DragState.IDLE and self._pressed_id is not None:
            ox, oy = self._origin
            if math.hypot(x - ox, y - oy) >= self.activation_distance:
                self.state = DragState.DRAGGING
                self.dragged_id = self._pressed_id
                logger.debug("Drag started for %s", self.dragged_id)
        if self.state == DragState.DRAGGING:
            self.over_id = over_id
        return self.state

    def release(self, over_id: str | None = None, *, into: bool = False) -> DropOutcome:
        """Release the pointer, committing the move if it is legal.

        ``over_id`` defaults to the last target seen by ``pointer_move``.
        ``into`` appends to the target group instead of taking its place.
        """
        if self.state != DragState.DRAGGING:
            self._reset()
            return DropOutcome(DropStatus.CANCELLED, reason="drag not started")

        target_id = over_id if over_id is not None else self.over_id
        dragged_id = self.dragged_id
        if target_id is None:
            return self._end(DropStatus.CANCELLED, dragged_id, None, "no drop target")
        if target_id == dragged_id:
            return self._end(DropStatus.CANCELLED, dragged_id, target_id, "same position")

        root = self._get_root()
        dragged = find_item_by_id(root, dragged_id)
        target = find_item_by_id(root, target_id)
        if dragged is None or target is None:
            return self._end(DropStatus.CANCELLED, dragged_id, target_id, "node no longer in tree")

        if not can_drop_item(dragged[0], target[0]):
            return self._end(
                DropStatus.REJECTED, dragged_id, target_id, "group cannot be dropped into itself"
            )

        new_root = move_item(root, dragged_id, target_id, into=into)
        if new_root == root:
            return self._end(DropStatus.UNCHANGED, dragged_id, target_id, None)

        self._reset()
        self._commit(new_root)
        logger.debug("Moved %s onto %s", dragged_id, target_id)
        return DropOutcome(DropStatus.COMMITTED, dragged_id, target_id)

    def cancel(self) -> DropOutcome:
        """Abort the current drag (e.g. Escape)."""
        if self.state != DragState.DRAGGING:
            self._reset()
            return DropOutcome(DropStatus.CANCELLED, reason="drag not started")
        return self._end(DropStatus.CANCELLED, self.dragged_id, self.over_id, "cancelled")

    def _end(
        self, status: DropStatus, dragged_id: str | None, target_id: str | None, reason: str | None
    ) -> DropOutcome:
        # stays CANCELLED until the next press returns the coordinator to IDLE
        self._reset()
        self.state = DragState.CANCELLED
        logger.debug("Drag of %s ended without commit: %s", dragged_id, reason or status.value)
        return DropOutcome(status, dragged_id, target_id, reason)
