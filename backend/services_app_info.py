"""
Service for app_info: name/version records keyed by name.
init_postgres_db seeds the running application's own record.
"""
import logging
from typing import List, Optional

from db_postgres import PostgresDatabase
from models.app_info import AppInfo

logger = logging.getLogger("treegraph")


class AppInfoRepository:
    def __init__(self, db: PostgresDatabase):
        self.db = db

    def list_app_info(self) -> List[AppInfo]:
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM app_info ORDER BY name ASC")
            return [AppInfo(**row) for row in cur.fetchall()]

    def get_app_info(self, name: str) -> Optional[AppInfo]:
        with self.db.transaction() as cur:
            cur.execute("SELECT * FROM app_info WHERE name = %s", (name,))
            row = cur.fetchone()
        return AppInfo(**row) if row else None

    def create_app_info(self, name: str, version: str) -> Optional[AppInfo]:
        """Insert a record. Returns None when the name is already taken."""
        with self.db.transaction() as cur:
            cur.execute(
                "INSERT INTO app_info (name, version) VALUES (%s, %s) ON CONFLICT (name) DO NOTHING RETURNING *",
                (name, version),
            )
            row = cur.fetchone()
        if row:
            logger.info(f"[app_info] Registered {name} {version}")
        return AppInfo(**row) if row else None

    def update_app_info(self, name: str, version: str) -> Optional[AppInfo]:
        with self.db.transaction() as cur:
            cur.execute(
                "UPDATE app_info SET version = %s WHERE name = %s RETURNING *",
                (version, name),
            )
            row = cur.fetchone()
        return AppInfo(**row) if row else None

    def delete_app_info(self, name: str) -> bool:
        with self.db.transaction() as cur:
            cur.execute("DELETE FROM app_info WHERE name = %s", (name,))
            return cur.rowcount > 0
