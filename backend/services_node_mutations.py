"""
Structural writes on the node store: create, move, delete, update.

Every function takes the cursor of an open transaction. Structural
operations first take a transaction-scoped advisory lock keyed by the tree
id, so concurrent structural writers on one tree are serialized by Postgres.
All interval arithmetic comes from services_intervals.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from services_intervals import GapShift, allocate_interval, insertion_gap, closing_gap, plan_move
from services_node_queries import (
    NodeRow,
    row_interval,
    select_max_right,
    select_next_position,
    select_node,
)
from tree_errors import InvalidPatchError, ParentNotFoundError

logger = logging.getLogger("treegraph")

UPDATABLE_FIELDS = ("name", "position", "category_id", "props", "type_id")
STRUCTURAL_FIELDS = ("id", "tree_id", "parent_id", "euler_left", "euler_right", "depth")


def check_patch(patch: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate a node patch.

    Raises:
        InvalidPatchError: the patch names a structural column or an unknown field.
    """
    structural = sorted(key for key in patch if key in STRUCTURAL_FIELDS)
    if structural:
        raise InvalidPatchError(
            f"Structural fields cannot be patched: {', '.join(structural)}. Use move instead."
        )
    unknown = sorted(key for key in patch if key not in UPDATABLE_FIELDS)
    if unknown:
        raise InvalidPatchError(f"Unknown fields in patch: {', '.join(unknown)}")
    return {key: patch[key] for key in UPDATABLE_FIELDS if key in patch}


def lock_tree(cur, tree_id: str) -> None:
    cur.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (str(tree_id),))


def apply_gap_shift(cur, tree_id: str, shift: GapShift) -> None:
    """Move every bound >= shift.at by shift.delta (detached rows are negative and untouched)."""
    cur.execute(
        "UPDATE node SET euler_right = euler_right + %s WHERE tree_id = %s AND euler_right >= %s",
        (shift.delta, tree_id, shift.at),
    )
    cur.execute(
        "UPDATE node SET euler_left = euler_left + %s WHERE tree_id = %s AND euler_left >= %s",
        (shift.delta, tree_id, shift.at),
    )


def insert_node(
    cur,
    tree_id: str,
    name: str,
    parent_id: Optional[str] = None,
    props: Optional[Dict[str, Any]] = None,
    category_id: Optional[str] = None,
    position: Optional[int] = None,
    type_id: Optional[str] = None,
) -> NodeRow:
    lock_tree(cur, tree_id)

    if parent_id is not None:
        parent = select_node(cur, tree_id, parent_id)
        if parent is None:
            raise ParentNotFoundError(tree_id, parent_id)
        parent_interval = row_interval(parent)
        interval = allocate_interval(parent_interval, None)
    else:
        parent_interval = None
        interval = allocate_interval(None, select_max_right(cur, tree_id))

    if position is None:
        position = select_next_position(cur, tree_id, parent_id)

    if parent_interval is not None:
        apply_gap_shift(cur, tree_id, insertion_gap(parent_interval))

    cur.execute(
        """
        INSERT INTO node (tree_id, parent_id, category_id, name, position, props,
                          euler_left, euler_right, depth, type_id)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING *
        """,
        (
            tree_id,
            parent_id,
            category_id,
            name,
            position,
            props or {},
            interval.left,
            interval.right,
            interval.depth,
            type_id,
        ),
    )
    return cur.fetchone()


def move_node(cur, tree_id: str, node_id: str, new_parent_id: Optional[str]) -> bool:
    """
    Re-parent a node together with its whole subtree.

    Returns False when the node does not exist in the tree.

    Raises:
        ParentNotFoundError: new_parent_id does not exist in the tree.
        CycleError: new_parent_id is the node or one of its descendants.
    """
    lock_tree(cur, tree_id)

    node = select_node(cur, tree_id, node_id)
    if node is None:
        return False
    subtree = row_interval(node)

    if new_parent_id is not None:
        parent = select_node(cur, tree_id, new_parent_id)
        if parent is None:
            raise ParentNotFoundError(tree_id, new_parent_id)
        plan = plan_move(subtree, row_interval(parent))
    else:
        plan = plan_move(subtree, None, select_max_right(cur, tree_id, outside=subtree))

    position = select_next_position(cur, tree_id, new_parent_id, exclude_id=node_id)

    # Park the subtree at negated bounds while the rest of the tree is shifted.
    cur.execute(
        """
        UPDATE node SET euler_left = -euler_left, euler_right = -euler_right
        WHERE tree_id = %s AND euler_left >= %s AND euler_right <= %s
        """,
        (tree_id, subtree.left, subtree.right),
    )
    apply_gap_shift(cur, tree_id, plan.close)
    if plan.open is not None:
        apply_gap_shift(cur, tree_id, plan.open)
    cur.execute(
        """
        UPDATE node
        SET euler_left = -euler_left + %s,
            euler_right = -euler_right + %s,
            depth = depth + %s
        WHERE tree_id = %s AND euler_left < 0
        """,
        (plan.offset, plan.offset, plan.depth_delta, tree_id),
    )
    cur.execute(
        "UPDATE node SET parent_id = %s, position = %s WHERE tree_id = %s AND id = %s",
        (new_parent_id, position, tree_id, node_id),
    )
    return True


def remove_subtree(cur, tree_id: str, node_id: str) -> bool:
    """Delete a node and all its descendants, then close the hole. False when not found."""
    lock_tree(cur, tree_id)

    node = select_node(cur, tree_id, node_id)
    if node is None:
        return False
    subtree = row_interval(node)

    cur.execute(
        "DELETE FROM node WHERE tree_id = %s AND euler_left >= %s AND euler_right <= %s",
        (tree_id, subtree.left, subtree.right),
    )
    apply_gap_shift(cur, tree_id, closing_gap(subtree))
    return True


def patch_node(cur, tree_id: str, node_id: str, patch: Mapping[str, Any]) -> Optional[NodeRow]:
    """Apply a non-structural patch. An empty patch just reads the row."""
    fields = check_patch(patch)
    if not fields:
        return select_node(cur, tree_id, node_id)

    assignments = ", ".join(f"{column} = %s" for column in fields)
    params = tuple(
        (value or {}) if column == "props" else value
        for column, value in fields.items()
    )
    cur.execute(
        f"UPDATE node SET {assignments} WHERE tree_id = %s AND id = %s RETURNING *",
        params + (tree_id, node_id),
    )
    return cur.fetchone()
