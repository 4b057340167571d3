"""
Read side of the node store.

All functions take an open cursor so they can run inside the caller's
transaction. Every subtree/path question is answered with a single interval
or equality query over (tree_id, euler_left, euler_right).
"""
from typing import Any, Dict, List, Optional

from services_intervals import Interval
from tree_errors import InvalidDepthError

NodeRow = Dict[str, Any]


def check_max_depth(max_depth: Any) -> Optional[int]:
    """Reject negative or non-integer depth limits before any query runs."""
    if max_depth is None:
        return None
    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
        raise InvalidDepthError(max_depth)
    return max_depth


def row_interval(row: NodeRow) -> Interval:
    return Interval(row["euler_left"], row["euler_right"], row["depth"])


def select_node(cur, tree_id: str, node_id: str) -> Optional[NodeRow]:
    cur.execute(
        "SELECT * FROM node WHERE tree_id = %s AND id = %s",
        (tree_id, node_id),
    )
    return cur.fetchone()


def select_children(cur, tree_id: str, parent_id: Optional[str]) -> List[NodeRow]:
    if parent_id is None:
        cur.execute(
            """
            SELECT * FROM node
            WHERE tree_id = %s AND parent_id IS NULL
            ORDER BY position ASC, created_at ASC, euler_left ASC
            """,
            (tree_id,),
        )
    else:
        cur.execute(
            """
            SELECT * FROM node
            WHERE tree_id = %s AND parent_id = %s
            ORDER BY position ASC, created_at ASC, euler_left ASC
            """,
            (tree_id, parent_id),
        )
    return cur.fetchall()


def select_all(cur, tree_id: str) -> List[NodeRow]:
    cur.execute(
        "SELECT * FROM node WHERE tree_id = %s ORDER BY euler_left ASC, position ASC",
        (tree_id,),
    )
    return cur.fetchall()


def select_path_to_root(cur, tree_id: str, node_id: str) -> List[NodeRow]:
    """Ancestors of the node plus the node itself, root first."""
    cur.execute(
        """
        SELECT a.* FROM node t
        JOIN node a
          ON a.tree_id = t.tree_id
         AND a.euler_left <= t.euler_left
         AND a.euler_right >= t.euler_right
        WHERE t.tree_id = %s AND t.id = %s
        ORDER BY a.euler_left ASC
        """,
        (tree_id, node_id),
    )
    return cur.fetchall()


def select_subtree(cur, tree_id: str, node_id: str, max_depth: Optional[int] = None) -> List[NodeRow]:
    """
    The node and its descendants in pre-order.

    Each row carries relative_depth (0 for the node itself). With max_depth,
    rows deeper than max_depth levels below the node are left out.
    """
    max_depth = check_max_depth(max_depth)
    query = """
        SELECT n.*, n.depth - t.depth AS relative_depth FROM node t
        JOIN node n
          ON n.tree_id = t.tree_id
         AND n.euler_left >= t.euler_left
         AND n.euler_right <= t.euler_right
        WHERE t.tree_id = %s AND t.id = %s
    """
    params: tuple = (tree_id, node_id)
    if max_depth is not None:
        query += " AND n.depth - t.depth <= %s"
        params = params + (max_depth,)
    query += " ORDER BY n.euler_left ASC"
    cur.execute(query, params)
    return cur.fetchall()


def select_by_type(cur, tree_id: str, type_value: str) -> List[NodeRow]:
    cur.execute(
        """
        SELECT * FROM node
        WHERE tree_id = %s AND props @> %s::jsonb
        ORDER BY euler_left ASC
        """,
        (tree_id, {"type": type_value}),
    )
    return cur.fetchall()


def select_max_right(cur, tree_id: str, outside: Optional[Interval] = None) -> Optional[int]:
    """Largest euler_right in the tree, optionally ignoring one subtree."""
    if outside is None:
        cur.execute(
            "SELECT MAX(euler_right) AS max_right FROM node WHERE tree_id = %s",
            (tree_id,),
        )
    else:
        cur.execute(
            """
            SELECT MAX(euler_right) AS max_right FROM node
            WHERE tree_id = %s AND NOT (euler_left >= %s AND euler_right <= %s)
            """,
            (tree_id, outside.left, outside.right),
        )
    row = cur.fetchone()
    return row["max_right"] if row else None


def select_next_position(
    cur,
    tree_id: str,
    parent_id: Optional[str],
    exclude_id: Optional[str] = None,
) -> int:
    """Position after the last current child of parent_id (0 when it has none)."""
    query = "SELECT COALESCE(MAX(position) + 1, 0) AS next_position FROM node WHERE tree_id = %s"
    params: tuple = (tree_id,)
    if parent_id is None:
        query += " AND parent_id IS NULL"
    else:
        query += " AND parent_id = %s"
        params = params + (parent_id,)
    if exclude_id is not None:
        query += " AND id <> %s"
        params = params + (exclude_id,)
    cur.execute(query, params)
    row = cur.fetchone()
    return int(row["next_position"]) if row else 0
