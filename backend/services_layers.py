"""
Service for layers. A layer groups edges; deleting it deletes its edges.
"""
import logging
from typing import Any, Dict, List, Optional

from db_postgres import PostgresDatabase
from models.layer import Layer
from services_trees import check_props_schema
from utils.ids import is_uuid

logger = logging.getLogger("treegraph")


class LayerRepository:
    def __init__(self, db: PostgresDatabase):
        self.db = db

    def list_layers(self) -> List[Layer]:
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM layer ORDER BY created_at ASC")
            return [Layer(**row) for row in cur.fetchall()]

    def get_layer(self, layer_id: str) -> Optional[Layer]:
        if not is_uuid(layer_id):
            return None
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM layer WHERE id = %s", (layer_id,))
            row = cur.fetchone()
        return Layer(**row) if row else None

    def create_layer(
        self,
        name: str,
        props: Optional[Dict[str, Any]] = None,
        props_schema: Optional[str] = None,
    ) -> Layer:
        check_props_schema(props_schema)
        with self.db.transaction() as cur:
            cur.execute(
                "INSERT INTO layer (name, props, props_schema) VALUES (%s, %s, %s) RETURNING *",
                (name, props or {}, props_schema),
            )
            row = cur.fetchone()
        logger.info(f"[layers] Created layer {row['id']} ({name})")
        return Layer(**row)

    def rename_layer(self, layer_id: str, name: str) -> Optional[Layer]:
        if not is_uuid(layer_id):
            return None
        with self.db.transaction() as cur:
            cur.execute(
                "UPDATE layer SET name = %s WHERE id = %s RETURNING *",
                (name, layer_id),
            )
            row = cur.fetchone()
        return Layer(**row) if row else None

    def delete_layer(self, layer_id: str) -> bool:
        if not is_uuid(layer_id):
            return False
        with self.db.transaction() as cur:
            cur.execute("DELETE FROM layer WHERE id = %s", (layer_id,))
            return cur.rowcount > 0
