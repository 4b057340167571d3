"""
Nested-set interval arithmetic.

Every node of a tree carries an (euler_left, euler_right) pair and a depth.
A is an ancestor of B iff A.left < B.left and B.right < A.right. This module
only computes numbers; the stores apply them (as SQL updates or to in-memory
rows) inside one unit of work.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from tree_errors import CycleError


@dataclass(frozen=True)
class Interval:
    left: int
    right: int
    depth: int = 0

    @property
    def width(self) -> int:
        """Interval space taken by the node and its whole subtree."""
        return self.right - self.left + 1

    def encloses(self, other: "Interval") -> bool:
        return self.left <= other.left and other.right <= self.right

    def strictly_contains(self, other: "Interval") -> bool:
        return self.left < other.left and other.right < self.right


@dataclass(frozen=True)
class GapShift:
    """Move every bound >= `at` by `delta`."""

    at: int
    delta: int

    def apply(self, bound: int) -> int:
        return bound + self.delta if bound >= self.at else bound

    def apply_interval(self, interval: Interval) -> Interval:
        return Interval(self.apply(interval.left), self.apply(interval.right), interval.depth)


def allocate_interval(parent: Optional[Interval], current_max_right: Optional[int]) -> Interval:
    """
    Compute the interval of a new leaf.

    Args:
        parent: Current interval of the parent, or None for a root node.
        current_max_right: Largest euler_right in the tree (None when empty).
            Only used for root nodes.

    Returns:
        The (left, right, depth) of the new node. For a child, the caller must
        apply `insertion_gap(parent)` to the existing rows in the same unit of
        work, before or together with the insert.
    """
    if parent is None:
        left = (current_max_right or 0) + 1
        return Interval(left, left + 1, 0)
    return Interval(parent.right, parent.right + 1, parent.depth + 1)


def insertion_gap(parent: Interval) -> GapShift:
    # The parent's own right bound is included so the new leaf lands inside it.
    return GapShift(at=parent.right, delta=2)


def closing_gap(removed: Interval) -> GapShift:
    return GapShift(at=removed.right + 1, delta=-removed.width)


@dataclass(frozen=True)
class MovePlan:
    subtree: Interval
    close: GapShift
    open: Optional[GapShift]
    new_left: int
    depth_delta: int

    @property
    def width(self) -> int:
        return self.subtree.width

    @property
    def offset(self) -> int:
        return self.new_left - self.subtree.left

    def relocate(self, interval: Interval) -> Interval:
        """Position of a subtree member once re-attached."""
        return Interval(
            interval.left + self.offset,
            interval.right + self.offset,
            interval.depth + self.depth_delta,
        )


def plan_move(
    node: Interval,
    new_parent: Optional[Interval],
    max_right_outside: Optional[int] = None,
) -> MovePlan:
    """
    Plan a subtree move.

    The subtree is detached, the hole it leaves is closed (`close`), a gap of
    the same width is opened at the insertion point (`open`, None for a move
    to root) and the subtree is re-attached shifted by `offset` with every
    depth moved by `depth_delta`.

    Args:
        node: Current interval of the subtree root.
        new_parent: Current interval of the new parent, or None to move to root.
        max_right_outside: Largest euler_right among nodes outside the subtree,
            before the move. Only used when moving to root.

    Raises:
        CycleError: new_parent is the node itself or one of its descendants.
    """
    close = closing_gap(node)

    if new_parent is not None:
        if node.encloses(new_parent):
            raise CycleError()
        insertion_point = close.apply(new_parent.right)
        return MovePlan(
            subtree=node,
            close=close,
            open=GapShift(at=insertion_point, delta=node.width),
            new_left=insertion_point,
            depth_delta=new_parent.depth + 1 - node.depth,
        )

    if max_right_outside is None:
        new_left = 1
    else:
        new_left = close.apply(max_right_outside) + 1
    return MovePlan(
        subtree=node,
        close=close,
        open=None,
        new_left=new_left,
        depth_delta=-node.depth,
    )


def find_violations(nodes: Mapping[str, Tuple[Optional[str], Interval]]) -> List[str]:
    """
    Check a whole tree against the nested-set invariants.

    Args:
        nodes: node_id -> (parent_id, interval) for every node of one tree.

    Returns:
        Human readable descriptions of every problem found (empty when valid).
    """
    problems: List[str] = []
    bound_owner: Dict[int, str] = {}

    for node_id, (parent_id, interval) in nodes.items():
        if interval.left >= interval.right:
            problems.append(f"{node_id}: left {interval.left} is not below right {interval.right}")
        elif (interval.right - interval.left) % 2 == 0:
            problems.append(f"{node_id}: interval [{interval.left}, {interval.right}] has an even span")

        for bound in (interval.left, interval.right):
            owner = bound_owner.get(bound)
            if owner is not None:
                problems.append(f"{node_id}: bound {bound} already used by {owner}")
            else:
                bound_owner[bound] = node_id

        if parent_id is None:
            if interval.depth != 0:
                problems.append(f"{node_id}: root has depth {interval.depth}")
            continue
        parent = nodes.get(parent_id)
        if parent is None:
            problems.append(f"{node_id}: parent {parent_id} does not exist")
        elif interval.depth != parent[1].depth + 1:
            problems.append(
                f"{node_id}: depth {interval.depth} but parent {parent_id} has depth {parent[1].depth}"
            )

    # Walk in pre-order; the innermost open interval must be the parent.
    stack: List[Tuple[str, Interval]] = []
    for node_id, (parent_id, interval) in sorted(nodes.items(), key=lambda item: item[1][1].left):
        while stack and stack[-1][1].right < interval.left:
            stack.pop()
        if stack:
            enclosing_id, enclosing = stack[-1]
            if not enclosing.strictly_contains(interval):
                problems.append(f"{node_id}: partially overlaps {enclosing_id}")
            elif enclosing_id != parent_id:
                problems.append(f"{node_id}: nested directly in {enclosing_id} but parent is {parent_id}")
        elif parent_id is not None:
            problems.append(f"{node_id}: lies outside its parent {parent_id}")
        stack.append((node_id, interval))

    return problems


def intervals_by_id(nodes: Iterable) -> Dict[str, Tuple[Optional[str], Interval]]:
    """Build the `find_violations` input from `Node` models."""
    return {
        str(node.id): (
            str(node.parent_id) if node.parent_id is not None else None,
            Interval(node.euler_left, node.euler_right, node.depth),
        )
        for node in nodes
    }
