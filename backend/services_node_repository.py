"""
Postgres-backed node repository.

Each public method is one transaction on the injected PostgresDatabase.
Rows come back as RealDictCursor dicts and are returned as pydantic models.
Ids that are not UUIDs cannot match a row: lookups by such an id report
not-found without running a query.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from db_postgres import PostgresDatabase
from models.node import Node, SubtreeNode
from models.node_props import validate_counter_name, validate_delta
import services_node_counters as counters
import services_node_mutations as mutations
import services_node_queries as queries
from tree_errors import InvalidIdError, ParentNotFoundError
from utils.ids import is_uuid

logger = logging.getLogger("treegraph")

# Patch fields that reference other rows.
REFERENCE_FIELDS = ("category_id", "type_id")


def _to_node(row: Optional[Dict[str, Any]]) -> Optional[Node]:
    return Node(**row) if row else None


def _check_references(values: Mapping[str, Any]) -> None:
    for field in REFERENCE_FIELDS:
        value = values.get(field)
        if value is not None and not is_uuid(value):
            raise InvalidIdError(field, value)


class NodeRepository:
    def __init__(self, db: PostgresDatabase):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_node(self, tree_id: str, node_id: str) -> Optional[Node]:
        if not is_uuid(tree_id, node_id):
            return None
        with self.db.transaction() as cur:
            return _to_node(queries.select_node(cur, tree_id, node_id))

    def list_children(self, tree_id: str, parent_id: Optional[str] = None) -> List[Node]:
        if not is_uuid(tree_id) or (parent_id is not None and not is_uuid(parent_id)):
            return []
        with self.db.transaction() as cur:
            return [Node(**row) for row in queries.select_children(cur, tree_id, parent_id)]

    def list_all_nodes(self, tree_id: str) -> List[Node]:
        if not is_uuid(tree_id):
            return []
        with self.db.transaction() as cur:
            return [Node(**row) for row in queries.select_all(cur, tree_id)]

    def get_path_to_root(self, tree_id: str, node_id: str) -> List[Node]:
        if not is_uuid(tree_id, node_id):
            return []
        with self.db.transaction() as cur:
            return [Node(**row) for row in queries.select_path_to_root(cur, tree_id, node_id)]

    def get_subtree(self, tree_id: str, node_id: str, max_depth: Optional[int] = None) -> List[SubtreeNode]:
        queries.check_max_depth(max_depth)
        if not is_uuid(tree_id, node_id):
            return []
        with self.db.transaction() as cur:
            rows = queries.select_subtree(cur, tree_id, node_id, max_depth)
        return [SubtreeNode(**row) for row in rows]

    def list_by_type(self, tree_id: str, type_value: str) -> List[Node]:
        if not is_uuid(tree_id):
            return []
        with self.db.transaction() as cur:
            return [Node(**row) for row in queries.select_by_type(cur, tree_id, type_value)]

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
        if not is_uuid(tree_id):
            raise InvalidIdError("tree_id", tree_id)
        if parent_id is not None and not is_uuid(parent_id):
            raise ParentNotFoundError(tree_id, parent_id)
        _check_references({"category_id": category_id, "type_id": type_id})

        with self.db.transaction() as cur:
            row = mutations.insert_node(cur, tree_id, name, parent_id, props, category_id, position, type_id)
        logger.debug(
            f"[nodes] Created node {row['id']} in tree {tree_id} "
            f"at [{row['euler_left']}, {row['euler_right']}] depth {row['depth']}"
        )
        return Node(**row)

    def move_subtree(self, tree_id: str, node_id: str, new_parent_id: Optional[str]) -> bool:
        if not is_uuid(tree_id, node_id):
            return False
        if new_parent_id is not None and not is_uuid(new_parent_id):
            raise ParentNotFoundError(tree_id, new_parent_id)
        with self.db.transaction() as cur:
            moved = mutations.move_node(cur, tree_id, node_id, new_parent_id)
        if moved:
            logger.debug(f"[nodes] Moved node {node_id} in tree {tree_id} under {new_parent_id or 'root'}")
        return moved

    def delete_subtree(self, tree_id: str, node_id: str) -> bool:
        if not is_uuid(tree_id, node_id):
            return False
        with self.db.transaction() as cur:
            deleted = mutations.remove_subtree(cur, tree_id, node_id)
        if deleted:
            logger.debug(f"[nodes] Deleted subtree of node {node_id} in tree {tree_id}")
        return deleted

    def update_node(self, tree_id: str, node_id: str, patch: Mapping[str, Any]) -> Optional[Node]:
        mutations.check_patch(patch)
        _check_references(patch)
        if not is_uuid(tree_id, node_id):
            return None
        with self.db.transaction() as cur:
            return _to_node(mutations.patch_node(cur, tree_id, node_id, patch))

    def increment_counter(self, tree_id: str, node_id: str, counter: str, delta: int = 1) -> Optional[Node]:
        validate_counter_name(counter)
        validate_delta(delta)
        if not is_uuid(tree_id, node_id):
            return None
        with self.db.transaction() as cur:
            return _to_node(counters.increment_counter(cur, tree_id, node_id, counter, delta))
