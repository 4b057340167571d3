"""
Categories for nodes and edges.

Both kinds share one shape: a name, a JSON schema, and any number of parent
categories kept in a separate <kind>_category_graph table.
"""
import logging
from typing import Any, Dict, List, Optional

from db_postgres import PostgresDatabase
from models.category import Category
from tree_errors import InvalidIdError, SelfParentError
from utils.ids import is_uuid

logger = logging.getLogger("treegraph")

CATEGORY_KINDS = ("node", "edge")


def _unique(ids: Optional[List[str]]) -> List[str]:
    return list(dict.fromkeys(ids or []))


def _check_parent_ids(parent_ids: Optional[List[str]]) -> None:
    for parent_id in parent_ids or []:
        if not is_uuid(parent_id):
            raise InvalidIdError("parent_ids", parent_id)


class CategoryRepository:
    def __init__(self, db: PostgresDatabase, kind: str = "node"):
        if kind not in CATEGORY_KINDS:
            raise ValueError(f"Unknown category kind: {kind}")
        self.db = db
        self.kind = kind
        self.table = f"{kind}_category"
        self.graph_table = f"{kind}_category_graph"

    def _select(self, where: str = "") -> str:
        return f"""
            SELECT c.*,
                   ARRAY(
                       SELECT g.parent_id::text FROM {self.graph_table} g
                       WHERE g.child_id = c.id ORDER BY g.parent_id
                   ) AS parent_ids
            FROM {self.table} c
            {where}
        """

    def _fetch(self, cur, category_id: str) -> Optional[Category]:
        cur.execute(self._select("WHERE c.id = %s"), (category_id,))
        row = cur.fetchone()
        return Category(**row) if row else None

    def _set_parents(self, cur, category_id: str, parent_ids: List[str]) -> None:
        cur.execute(f"DELETE FROM {self.graph_table} WHERE child_id = %s", (category_id,))
        for parent_id in parent_ids:
            cur.execute(
                f"INSERT INTO {self.graph_table} (parent_id, child_id) VALUES (%s, %s)",
                (parent_id, category_id),
            )

    def list_categories(self, parent_id: Optional[str] = None, roots_only: bool = False) -> List[Category]:
        """
        List categories ordered by name.

        Args:
            parent_id: Only categories that have this parent.
            roots_only: Only categories without any parent (ignored when parent_id is given).
        """
        if parent_id is not None and not is_uuid(parent_id):
            return []
        params: tuple = ()
        if parent_id is not None:
            where = f"WHERE EXISTS (SELECT 1 FROM {self.graph_table} p WHERE p.child_id = c.id AND p.parent_id = %s)"
            params = (parent_id,)
        elif roots_only:
            where = f"WHERE NOT EXISTS (SELECT 1 FROM {self.graph_table} p WHERE p.child_id = c.id)"
        else:
            where = ""
        with self.db.transaction() as cur:
            cur.execute(self._select(where) + " ORDER BY c.name ASC", params)
            return [Category(**row) for row in cur.fetchall()]

    def get_category(self, category_id: str) -> Optional[Category]:
        if not is_uuid(category_id):
            return None
        with self.db.transaction() as cur:
            return self._fetch(cur, category_id)

    def get_category_by_name(self, name: str) -> Optional[Category]:
        with self.db.transaction() as cur:
            cur.execute(self._select("WHERE c.name = %s") + " ORDER BY c.created_at ASC LIMIT 1", (name,))
            row = cur.fetchone()
        return Category(**row) if row else None

    def create_category(
        self,
        name: str,
        parent_ids: Optional[List[str]] = None,
        schema: Optional[Dict[str, Any]] = None,
    ) -> Category:
        _check_parent_ids(parent_ids)
        with self.db.transaction() as cur:
            cur.execute(
                f"INSERT INTO {self.table} (name, schema) VALUES (%s, %s) RETURNING id",
                (name, schema or {}),
            )
            category_id = cur.fetchone()["id"]
            self._set_parents(cur, category_id, _unique(parent_ids))
            category = self._fetch(cur, category_id)
        logger.info(f"[categories] Created {self.kind} category {category_id} ({name})")
        return category

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        schema: Optional[Dict[str, Any]] = None,
        parent_ids: Optional[List[str]] = None,
    ) -> Optional[Category]:
        """
        Update a category. parent_ids, when given, replaces the whole parent set.

        Raises:
            SelfParentError: parent_ids contains category_id.
            InvalidIdError: a parent id is not a valid UUID.
        """
        if parent_ids is not None and category_id in parent_ids:
            raise SelfParentError()
        _check_parent_ids(parent_ids)
        if not is_uuid(category_id):
            return None

        fields: Dict[str, Any] = {}
        if name is not None:
            fields["name"] = name
        if schema is not None:
            fields["schema"] = schema

        with self.db.transaction() as cur:
            if fields:
                assignments = ", ".join(f"{column} = %s" for column in fields)
                cur.execute(
                    f"UPDATE {self.table} SET {assignments} WHERE id = %s RETURNING id",
                    tuple(fields.values()) + (category_id,),
                )
                if cur.fetchone() is None:
                    return None
            elif parent_ids is not None:
                if self._fetch(cur, category_id) is None:
                    return None
            if parent_ids is not None:
                self._set_parents(cur, category_id, _unique(parent_ids))
            return self._fetch(cur, category_id)

    def delete_category(self, category_id: str) -> bool:
        if not is_uuid(category_id):
            return False
        with self.db.transaction() as cur:
            cur.execute(f"DELETE FROM {self.table} WHERE id = %s", (category_id,))
            return cur.rowcount > 0
