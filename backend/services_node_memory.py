"""
In-process node repository with the same API as NodeRepository.

Used when TREE_STORE_BACKEND=memory and by the invariant tests. Each tree has
its own lock; every operation holds it for its whole duration, so an
operation is atomic with respect to other operations on the same tree. A
failed operation raises before touching any row.
"""
import logging
import threading
import uuid
from copy import deepcopy
from contextlib import contextmanager
from itertools import count
from typing import Any, Dict, Iterator, List, Mapping, Optional

from models.node import Node, SubtreeNode
from models.node_props import with_counter_incremented
from services_intervals import (
    GapShift,
    Interval,
    allocate_interval,
    closing_gap,
    find_violations,
    insertion_gap,
    intervals_by_id,
    plan_move,
)
from services_node_mutations import check_patch
from services_node_queries import check_max_depth
from tree_errors import ParentNotFoundError
from utils.timestamp import utcnow

logger = logging.getLogger("treegraph")


def _interval(row: Dict[str, Any]) -> Interval:
    return Interval(row["euler_left"], row["euler_right"], row["depth"])


class InMemoryNodeRepository:
    def __init__(self):
        self._rows: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        # Insertion order, used as the created_at tie-breaker.
        self._seq = count()

    def _lock(self, tree_id: str) -> threading.Lock:
        # Only writes that add rows register a tree.
        with self._locks_guard:
            lock = self._locks.get(tree_id)
            if lock is None:
                lock = self._locks[tree_id] = threading.Lock()
                self._rows[tree_id] = {}
            return lock

    def _existing_lock(self, tree_id: str) -> Optional[threading.Lock]:
        with self._locks_guard:
            return self._locks.get(tree_id)

    def tree_count(self) -> int:
        """Number of trees that hold or have held nodes."""
        with self._locks_guard:
            return len(self._locks)

    @staticmethod
    def _node(row: Dict[str, Any]) -> Node:
        return Node(**deepcopy({key: value for key, value in row.items() if not key.startswith("_")}))

    @staticmethod
    def _shift(rows: Dict[str, Dict[str, Any]], shift: GapShift) -> None:
        for row in rows.values():
            row["euler_left"] = shift.apply(row["euler_left"])
            row["euler_right"] = shift.apply(row["euler_right"])

    @staticmethod
    def _inside(rows: Dict[str, Dict[str, Any]], subtree: Interval) -> List[Dict[str, Any]]:
        return [row for row in rows.values() if subtree.encloses(_interval(row))]

    def _next_position(self, rows, parent_id: Optional[str], exclude_id: Optional[str] = None) -> int:
        positions = [
            row["position"]
            for row in rows.values()
            if row["parent_id"] == parent_id and row["id"] != exclude_id
        ]
        return max(positions) + 1 if positions else 0

    @contextmanager
    def _existing(self, tree_id: str) -> Iterator[Dict[str, Dict[str, Any]]]:
        """Hold the tree's lock and yield its rows; an unknown tree yields {} without registering it."""
        lock = self._existing_lock(tree_id)
        if lock is None:
            yield {}
            return
        with lock:
            yield self._rows[tree_id]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_node(self, tree_id: str, node_id: str) -> Optional[Node]:
        with self._existing(tree_id) as rows:
            row = rows.get(node_id)
            return self._node(row) if row else None

    def list_children(self, tree_id: str, parent_id: Optional[str] = None) -> List[Node]:
        with self._existing(tree_id) as rows:
            children = [row for row in rows.values() if row["parent_id"] == parent_id]
            children.sort(key=lambda row: (row["position"], row["_seq"]))
            return [self._node(row) for row in children]

    def list_all_nodes(self, tree_id: str) -> List[Node]:
        with self._existing(tree_id) as rows:
            ordered = sorted(rows.values(), key=lambda row: (row["euler_left"], row["position"]))
            return [self._node(row) for row in ordered]

    def get_path_to_root(self, tree_id: str, node_id: str) -> List[Node]:
        with self._existing(tree_id) as rows:
            target = rows.get(node_id)
            if target is None:
                return []
            target_interval = _interval(target)
            path = [row for row in rows.values() if _interval(row).encloses(target_interval)]
            path.sort(key=lambda row: row["euler_left"])
            return [self._node(row) for row in path]

    def get_subtree(self, tree_id: str, node_id: str, max_depth: Optional[int] = None) -> List[SubtreeNode]:
        max_depth = check_max_depth(max_depth)
        with self._existing(tree_id) as rows:
            target = rows.get(node_id)
            if target is None:
                return []
            result = []
            for row in sorted(self._inside(rows, _interval(target)), key=lambda row: row["euler_left"]):
                relative_depth = row["depth"] - target["depth"]
                if max_depth is not None and relative_depth > max_depth:
                    continue
                result.append(SubtreeNode(**self._node(row).model_dump(), relative_depth=relative_depth))
            return result

    def list_by_type(self, tree_id: str, type_value: str) -> List[Node]:
        with self._existing(tree_id) as rows:
            matches = [
                row for row in rows.values()
                if isinstance(row["props"], dict) and row["props"].get("type") == type_value
            ]
            matches.sort(key=lambda row: row["euler_left"])
            return [self._node(row) for row in matches]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_node(
        self,
        tree_id: str,
        name: str,
        parent_id: Optional[str] = None,
        props: Optional[Dict[str, Any]] = None,
        category_id: Optional[str] = None,
        position: Optional[int] = None,
        type_id: Optional[str] = None,
    ) -> Node:
        # A parent can only exist in a tree that is already registered.
        if parent_id is not None and self._existing_lock(tree_id) is None:
            raise ParentNotFoundError(tree_id, parent_id)

        with self._lock(tree_id):
            rows = self._rows[tree_id]
            if parent_id is not None:
                parent = rows.get(parent_id)
                if parent is None:
                    raise ParentNotFoundError(tree_id, parent_id)
                parent_interval = _interval(parent)
                interval = allocate_interval(parent_interval, None)
            else:
                parent_interval = None
                max_right = max((row["euler_right"] for row in rows.values()), default=None)
                interval = allocate_interval(None, max_right)

            if position is None:
                position = self._next_position(rows, parent_id)
            if parent_interval is not None:
                self._shift(rows, insertion_gap(parent_interval))

            now = utcnow()
            row = {
                "id": str(uuid.uuid4()),
                "tree_id": tree_id,
                "parent_id": parent_id,
                "category_id": category_id,
                "type_id": type_id,
                "name": name,
                "position": position,
                "props": deepcopy(props or {}),
                "euler_left": interval.left,
                "euler_right": interval.right,
                "depth": interval.depth,
                "created_at": now,
                "updated_at": now,
                "_seq": next(self._seq),
            }
            rows[row["id"]] = row
            logger.debug(f"[nodes] Created node {row['id']} in tree {tree_id} at [{interval.left}, {interval.right}]")
            return self._node(row)

    def move_subtree(self, tree_id: str, node_id: str, new_parent_id: Optional[str]) -> bool:
        with self._existing(tree_id) as rows:
            node = rows.get(node_id)
            if node is None:
                return False
            subtree = _interval(node)

            if new_parent_id is not None:
                parent = rows.get(new_parent_id)
                if parent is None:
                    raise ParentNotFoundError(tree_id, new_parent_id)
                plan = plan_move(subtree, _interval(parent))
            else:
                outside = [row["euler_right"] for row in rows.values() if not subtree.encloses(_interval(row))]
                plan = plan_move(subtree, None, max(outside, default=None))

            position = self._next_position(rows, new_parent_id, exclude_id=node_id)
            members = self._inside(rows, subtree)
            member_ids = {row["id"] for row in members}
            rest = {row_id: row for row_id, row in rows.items() if row_id not in member_ids}

            self._shift(rest, plan.close)
            if plan.open is not None:
                self._shift(rest, plan.open)
            for row in members:
                moved = plan.relocate(_interval(row))
                row["euler_left"], row["euler_right"], row["depth"] = moved.left, moved.right, moved.depth

            node["parent_id"] = new_parent_id
            node["position"] = position
            node["updated_at"] = utcnow()
            logger.debug(f"[nodes] Moved node {node_id} in tree {tree_id} under {new_parent_id or 'root'}")
            return True

    def delete_subtree(self, tree_id: str, node_id: str) -> bool:
        with self._existing(tree_id) as rows:
            node = rows.get(node_id)
            if node is None:
                return False
            subtree = _interval(node)
            for row in self._inside(rows, subtree):
                del rows[row["id"]]
            self._shift(rows, closing_gap(subtree))
            logger.debug(f"[nodes] Deleted subtree of node {node_id} in tree {tree_id}")
            return True

    def update_node(self, tree_id: str, node_id: str, patch: Mapping[str, Any]) -> Optional[Node]:
        fields = check_patch(patch)
        with self._existing(tree_id) as rows:
            row = rows.get(node_id)
            if row is None:
                return None
            if fields:
                if "props" in fields:
                    fields["props"] = deepcopy(fields["props"] or {})
                row.update(fields)
                row["updated_at"] = utcnow()
            return self._node(row)

    def increment_counter(self, tree_id: str, node_id: str, counter: str, delta: int = 1) -> Optional[Node]:
        with self._existing(tree_id) as rows:
            row = rows.get(node_id)
            props = with_counter_incremented(row["props"] if row else None, counter, delta)
            if row is None:
                return None
            row["props"] = props
            row["updated_at"] = utcnow()
            return self._node(row)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def check_tree(self, tree_id: str) -> List[str]:
        """Nested-set invariant violations for one tree (empty when consistent)."""
        with self._existing(tree_id) as rows:
            nodes = [self._node(row) for row in rows.values()]
        return find_violations(intervals_by_id(nodes))
