"""
Service for named JSON schemas.
Trees and layers reference a schema through props_schema; deleting the schema
clears those references.
"""
import logging
from typing import Any, Dict, List, Optional

from db_postgres import PostgresDatabase
from models.json_schema import JsonSchema
from utils.ids import is_uuid

logger = logging.getLogger("treegraph")


class JsonSchemaRepository:
    def __init__(self, db: PostgresDatabase):
        self.db = db

    def list_schemas(self) -> List[JsonSchema]:
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM json_schemas ORDER BY name ASC")
            return [JsonSchema(**row) for row in cur.fetchall()]

    def get_schema(self, schema_id: str) -> Optional[JsonSchema]:
        if not is_uuid(schema_id):
            return None
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM json_schemas WHERE id = %s", (schema_id,))
            row = cur.fetchone()
        return JsonSchema(**row) if row else None

    def create_schema(self, name: str, schema: Optional[Dict[str, Any]] = None) -> JsonSchema:
        with self.db.transaction() as cur:
            cur.execute(
                "INSERT INTO json_schemas (name, schema) VALUES (%s, %s) RETURNING *",
                (name, schema or {}),
            )
            row = cur.fetchone()
        logger.info(f"[json_schemas] Created schema {row['id']} ({name})")
        return JsonSchema(**row)

    def update_schema(
        self,
        schema_id: str,
        name: Optional[str] = None,
        schema: Optional[Dict[str, Any]] = None,
    ) -> Optional[JsonSchema]:
        fields: Dict[str, Any] = {}
        if name is not None:
            fields["name"] = name
        if schema is not None:
            fields["schema"] = schema
        if not fields:
            return self.get_schema(schema_id)
        if not is_uuid(schema_id):
            return None

        assignments = ", ".join(f"{column} = %s" for column in fields)
        with self.db.transaction() as cur:
            cur.execute(
                f"UPDATE json_schemas SET {assignments} WHERE id = %s RETURNING *",
                tuple(fields.values()) + (schema_id,),
            )
            row = cur.fetchone()
        return JsonSchema(**row) if row else None

    def delete_schema(self, schema_id: str) -> bool:
        if not is_uuid(schema_id):
            return False
        with self.db.transaction() as cur:
            cur.execute("DELETE FROM json_schemas WHERE id = %s", (schema_id,))
            return cur.rowcount > 0
