"""
Service for trees: named collections of nodes.
Deleting a tree removes its nodes through the ON DELETE CASCADE foreign key.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from db_postgres import PostgresDatabase
from models.tree import Tree
from tree_errors import InvalidIdError
from utils.ids import is_uuid

logger = logging.getLogger("treegraph")

TREE_FIELDS = ("name", "props", "props_schema")


def check_props_schema(props_schema: Optional[str]) -> None:
    if props_schema is not None and not is_uuid(props_schema):
        raise InvalidIdError("props_schema", props_schema)


class TreeRepository:
    def __init__(self, db: PostgresDatabase):
        self.db = db

    def list_trees(self) -> List[Tree]:
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM tree ORDER BY created_at ASC")
            return [Tree(**row) for row in cur.fetchall()]

    def get_tree(self, tree_id: str) -> Optional[Tree]:
        if not is_uuid(tree_id):
            return None
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM tree WHERE id = %s", (tree_id,))
            row = cur.fetchone()
        return Tree(**row) if row else None

    def create_tree(
        self,
        name: str,
        props: Optional[Dict[str, Any]] = None,
        props_schema: Optional[str] = None,
    ) -> Tree:
        check_props_schema(props_schema)
        with self.db.transaction() as cur:
            cur.execute(
                "INSERT INTO tree (name, props, props_schema) VALUES (%s, %s, %s) RETURNING *",
                (name, props or {}, props_schema),
            )
            row = cur.fetchone()
        logger.info(f"[trees] Created tree {row['id']} ({name})")
        return Tree(**row)

    def rename_tree(self, tree_id: str, name: str) -> Optional[Tree]:
        return self.update_tree(tree_id, {"name": name})

    def update_tree(self, tree_id: str, patch: Mapping[str, Any]) -> Optional[Tree]:
        """
        Update the given fields; an empty patch is a read.

        name and props ignore None values; props_schema=None detaches the schema.
        """
        fields = {
            key: patch[key] for key in TREE_FIELDS
            if key in patch and (patch[key] is not None or key == "props_schema")
        }
        check_props_schema(fields.get("props_schema"))
        if not fields:
            return self.get_tree(tree_id)
        if not is_uuid(tree_id):
            return None

        assignments = ", ".join(f"{column} = %s" for column in fields)
        with self.db.transaction() as cur:
            cur.execute(
                f"UPDATE tree SET {assignments} WHERE id = %s RETURNING *",
                tuple(fields.values()) + (tree_id,),
            )
            row = cur.fetchone()
        return Tree(**row) if row else None

    def delete_tree(self, tree_id: str) -> bool:
        if not is_uuid(tree_id):
            return False
        with self.db.transaction() as cur:
            cur.execute("DELETE FROM tree WHERE id = %s", (tree_id,))
            deleted = cur.rowcount > 0
        if deleted:
            logger.info(f"[trees] Deleted tree {tree_id}")
        return deleted
