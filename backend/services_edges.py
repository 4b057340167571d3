"""
Typed edges between nodes, grouped into layers.

An edge is unordered: its endpoints are stored in canonical order (a <= b),
which is also what the table's CHECK constraint and unique index expect.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from db_postgres import PostgresDatabase
from models.edge import Edge
from tree_errors import InvalidIdError, SelfEdgeError
from utils.ids import is_uuid

logger = logging.getLogger("treegraph")

EDGE_FIELDS = ("name", "layer_id", "category_id", "type_id", "props")
REFERENCE_FIELDS = ("layer_id", "category_id", "type_id")

Endpoint = Tuple[str, str]


def canonical_endpoints(source: Endpoint, target: Endpoint) -> Tuple[Endpoint, Endpoint]:
    """
    Order two (tree_id, node_id) endpoints.

    Raises:
        SelfEdgeError: both endpoints are the same node.
    """
    a = (str(source[0]).strip().lower(), str(source[1]).strip().lower())
    b = (str(target[0]).strip().lower(), str(target[1]).strip().lower())
    if a == b:
        raise SelfEdgeError()
    return (a, b) if a <= b else (b, a)


def _check_ids(values: Mapping[str, Any]) -> None:
    for field, value in values.items():
        if value is not None and not is_uuid(value):
            raise InvalidIdError(field, value)


class EdgeRepository:
    def __init__(self, db: PostgresDatabase):
        self.db = db

    def list_edges(self) -> List[Edge]:
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM edge ORDER BY created_at ASC")
            return [Edge(**row) for row in cur.fetchall()]

    def list_edges_by_layer(self, layer_id: str) -> List[Edge]:
        if not is_uuid(layer_id):
            return []
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM edge WHERE layer_id = %s ORDER BY created_at ASC", (layer_id,))
            return [Edge(**row) for row in cur.fetchall()]

    def list_edges_for_node(self, tree_id: str, node_id: str) -> List[Edge]:
        if not is_uuid(tree_id, node_id):
            return []
        with self.db.transaction() as cur:
            cur.execute(
                """
                SELECT * FROM edge
                WHERE (a_tree_id = %s AND a_node_id = %s)
                   OR (b_tree_id = %s AND b_node_id = %s)
                ORDER BY created_at ASC
                """,
                (tree_id, node_id, tree_id, node_id),
            )
            return [Edge(**row) for row in cur.fetchall()]

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        if not is_uuid(edge_id):
            return None
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM edge WHERE id = %s", (edge_id,))
            row = cur.fetchone()
        return Edge(**row) if row else None

    def create_edge(
        self,
        layer_id: str,
        name: str,
        source: Endpoint,
        target: Endpoint,
        category_id: Optional[str] = None,
        props: Optional[Dict[str, Any]] = None,
        type_id: Optional[str] = None,
    ) -> Edge:
        (a_tree_id, a_node_id), (b_tree_id, b_node_id) = canonical_endpoints(source, target)
        _check_ids(
            {
                "layer_id": layer_id,
                "a_tree_id": a_tree_id,
                "a_node_id": a_node_id,
                "b_tree_id": b_tree_id,
                "b_node_id": b_node_id,
                "category_id": category_id,
                "type_id": type_id,
            }
        )
        with self.db.transaction() as cur:
            cur.execute(
                """
                INSERT INTO edge (name, layer_id, a_tree_id, a_node_id, b_tree_id, b_node_id,
                                  category_id, props, type_id)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING *
                """,
                (name, layer_id, a_tree_id, a_node_id, b_tree_id, b_node_id, category_id, props or {}, type_id),
            )
            row = cur.fetchone()
        logger.info(f"[edges] Created edge {row['id']} in layer {layer_id}")
        return Edge(**row)

    def update_edge(self, edge_id: str, patch: Mapping[str, Any]) -> Optional[Edge]:
        """Update name, layer, category, type or props. An empty patch is a read."""
        fields = {key: patch[key] for key in EDGE_FIELDS if key in patch}
        _check_ids({key: value for key, value in fields.items() if key in REFERENCE_FIELDS})
        if not fields:
            return self.get_edge(edge_id)
        if not is_uuid(edge_id):
            return None

        assignments = ", ".join(f"{column} = %s" for column in fields)
        params = tuple(
            (value or {}) if column == "props" else value
            for column, value in fields.items()
        )
        with self.db.transaction() as cur:
            cur.execute(
                f"UPDATE edge SET {assignments} WHERE id = %s RETURNING *",
                params + (edge_id,),
            )
            row = cur.fetchone()
        return Edge(**row) if row else None

    def delete_edge(self, edge_id: str) -> bool:
        if not is_uuid(edge_id):
            return False
        with self.db.transaction() as cur:
            cur.execute("DELETE FROM edge WHERE id = %s", (edge_id,))
            return cur.rowcount > 0
