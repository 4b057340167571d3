"""
Node and edge types.

A type names the shape of a node or edge: a JSON schema plus an optional
parent category of the same kind. Nodes and edges point at their type through
type_id; deleting a type clears that reference.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from db_postgres import PostgresDatabase
from models.entity_type import EntityType
from tree_errors import InvalidIdError
from utils.ids import is_uuid

logger = logging.getLogger("treegraph")

TYPE_KINDS = ("node", "edge")
TYPE_FIELDS = ("name", "parent_id", "schema")


def _check_parent(parent_id: Optional[str]) -> None:
    if parent_id is not None and not is_uuid(parent_id):
        raise InvalidIdError("parent_id", parent_id)


class TypeRepository:
    def __init__(self, db: PostgresDatabase, kind: str = "node"):
        if kind not in TYPE_KINDS:
            raise ValueError(f"Unknown type kind: {kind}")
        self.db = db
        self.kind = kind
        self.table = f"{kind}_types"

    def list_types(self, parent_id: Optional[str] = None) -> List[EntityType]:
        """List types ordered by name, optionally only those under one category."""
        if parent_id is None:
            where, params = "", ()
        elif not is_uuid(parent_id):
            return []
        else:
            where, params = " WHERE parent_id = %s", (parent_id,)
        with self.db.transaction() as cur:
            cur.execute(f"SELECT * FROM {self.table}{where} ORDER BY name ASC", params)
            return [EntityType(**row) for row in cur.fetchall()]

    def get_type(self, type_id: str) -> Optional[EntityType]:
        if not is_uuid(type_id):
            return None
        with self.db.transaction() as cur:
            cur.execute(f"SELECT * FROM {self.table} WHERE id = %s", (type_id,))
            row = cur.fetchone()
        return EntityType(**row) if row else None

    def create_type(
        self,
        name: str,
        parent_id: Optional[str] = None,
        schema: Optional[Dict[str, Any]] = None,
    ) -> EntityType:
        _check_parent(parent_id)
        with self.db.transaction() as cur:
            cur.execute(
                f"INSERT INTO {self.table} (name, parent_id, schema) VALUES (%s, %s, %s) RETURNING *",
                (name, parent_id, schema or {}),
            )
            row = cur.fetchone()
        logger.info(f"[types] Created {self.kind} type {row['id']} ({name})")
        return EntityType(**row)

    def update_type(self, type_id: str, patch: Mapping[str, Any]) -> Optional[EntityType]:
        """
        Update name, parent or schema. parent_id=None detaches the type from its
        category; None for the other fields is ignored. An empty patch is a read.
        """
        fields = {
            key: patch[key] for key in TYPE_FIELDS
            if key in patch and (patch[key] is not None or key == "parent_id")
        }
        _check_parent(fields.get("parent_id"))
        if not fields:
            return self.get_type(type_id)
        if not is_uuid(type_id):
            return None

        assignments = ", ".join(f"{column} = %s" for column in fields)
        with self.db.transaction() as cur:
            cur.execute(
                f"UPDATE {self.table} SET {assignments} WHERE id = %s RETURNING *",
                tuple(fields.values()) + (type_id,),
            )
            row = cur.fetchone()
        return EntityType(**row) if row else None

    def delete_type(self, type_id: str) -> bool:
        if not is_uuid(type_id):
            return False
        with self.db.transaction() as cur:
            cur.execute(f"DELETE FROM {self.table} WHERE id = %s", (type_id,))
            deleted = cur.rowcount > 0
        if deleted:
            logger.info(f"[types] Deleted {self.kind} type {type_id}")
        return deleted
