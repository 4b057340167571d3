"""
Postgres database connection utility.
Owns the connection pool, the transaction helper used by every repository,
and schema initialisation.
"""
import atexit
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg2
import psycopg2.pool
from psycopg2.extensions import register_adapter
from psycopg2.extras import RealDictCursor, Json

from config import APP_NAME, APP_VERSION, POSTGRES_CONNECTION_STRING, POSTGRES_POOL_MIN, POSTGRES_POOL_MAX

# Register adapter to handle dicts as JSON automatically
register_adapter(dict, Json)

logger = logging.getLogger("treegraph")


class PostgresDatabase:
    """
    Connection pool plus transaction helpers.

    One instance is created by the application at startup and handed to the
    repositories; the pool itself is created lazily on first use.
    """

    def __init__(
        self,
        dsn: str = POSTGRES_CONNECTION_STRING,
        min_connections: int = POSTGRES_POOL_MIN,
        max_connections: int = POSTGRES_POOL_MAX,
    ) -> None:
        self.dsn = dsn
        self.min_connections = min_connections
        self.max_connections = max_connections
        self._pool: Optional[psycopg2.pool.ThreadedConnectionPool] = None
        self._pool_lock = threading.Lock()

    def _get_pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        if self._pool is not None:
            return self._pool
        with self._pool_lock:
            if self._pool is None:
                self._pool = psycopg2.pool.ThreadedConnectionPool(
                    self.min_connections,
                    self.max_connections,
                    self.dsn,
                )
                # Close the pool cleanly when the process exits
                atexit.register(self._pool.closeall)
                logger.info(
                    f"[db_postgres] Connection pool created "
                    f"(min={self.min_connections}, max={self.max_connections})"
                )
        return self._pool

    def get_connection(self):
        """
        Borrow a connection from the pool.

        Callers must hand it back with `return_connection`; prefer `transaction()`.
        """
        pool = self._get_pool()
        try:
            return pool.getconn()
        except psycopg2.pool.PoolError as e:
            logger.error(f"[db_postgres] Pool exhausted: all {self.max_connections} connections in use: {e}")
            raise

    def return_connection(self, conn, error: bool = False) -> None:
        # Broken connections are closed instead of going back into the pool.
        self._get_pool().putconn(conn, close=error)

    @contextmanager
    def transaction(self) -> Iterator[RealDictCursor]:
        """
        Run a unit of work in one transaction.

        Yields a RealDictCursor. Commits when the block exits normally; rolls
        back and re-raises on any exception. Nothing is retried here.
        """
        conn = self.get_connection()
        error = False
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                yield cur
            conn.commit()
        except Exception:
            error = True
            try:
                conn.rollback()
            except psycopg2.Error as rollback_error:
                logger.warning(f"[db_postgres] Rollback failed: {rollback_error}")
            raise
        finally:
            self.return_connection(conn, error=error)

    def execute_query(self, query: str, params: Optional[tuple] = None, fetch: bool = True):
        """Execute a single statement in its own transaction and return the rows."""
        with self.transaction() as cur:
            cur.execute(query, params)
            return cur.fetchall() if fetch else None

    def close(self) -> None:
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None


# ---------------------------------------------------------------------------
# Schema initialisation, run once at startup via main.py lifespan
# ---------------------------------------------------------------------------

SCHEMA_STATEMENTS = [
    "CREATE EXTENSION IF NOT EXISTS pgcrypto;",
    """
    CREATE OR REPLACE FUNCTION set_updated_at() RETURNS TRIGGER AS $$
    BEGIN NEW.updated_at = now(); RETURN NEW; END;
    $$ LANGUAGE plpgsql;
    """,
    # Application metadata and the JSON schemas that trees and layers point at
    """
    CREATE TABLE IF NOT EXISTS app_info (
        name    TEXT PRIMARY KEY,
        version TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS json_schemas (
        id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name       TEXT NOT NULL,
        schema     JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_json_schemas_name ON json_schemas(name);",
    # Trees
    """
    CREATE TABLE IF NOT EXISTS tree (
        id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name       TEXT NOT NULL,
        props      JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_tree_name ON tree(name);",
    # Categories (node and edge flavours share the same shape)
    """
    CREATE TABLE IF NOT EXISTS node_category (
        id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name       TEXT NOT NULL,
        schema     JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_node_category_name ON node_category(name);",
    """
    CREATE TABLE IF NOT EXISTS node_category_graph (
        parent_id UUID NOT NULL REFERENCES node_category(id) ON DELETE CASCADE,
        child_id  UUID NOT NULL REFERENCES node_category(id) ON DELETE CASCADE,
        CONSTRAINT pk_node_category_graph PRIMARY KEY (parent_id, child_id),
        CONSTRAINT node_category_not_self_reference CHECK (parent_id <> child_id)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_node_category_graph_child ON node_category_graph(child_id);",
    """
    CREATE TABLE IF NOT EXISTS node_types (
        id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name       TEXT NOT NULL,
        parent_id  UUID REFERENCES node_category(id) ON DELETE CASCADE,
        schema     JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_node_types_name ON node_types(name);",
    """
    CREATE TABLE IF NOT EXISTS edge_category (
        id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name       TEXT NOT NULL,
        schema     JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_edge_category_name ON edge_category(name);",
    """
    CREATE TABLE IF NOT EXISTS edge_category_graph (
        parent_id UUID NOT NULL REFERENCES edge_category(id) ON DELETE CASCADE,
        child_id  UUID NOT NULL REFERENCES edge_category(id) ON DELETE CASCADE,
        CONSTRAINT pk_edge_category_graph PRIMARY KEY (parent_id, child_id),
        CONSTRAINT edge_category_not_self_reference CHECK (parent_id <> child_id)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_edge_category_graph_child ON edge_category_graph(child_id);",
    """
    CREATE TABLE IF NOT EXISTS edge_types (
        id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name       TEXT NOT NULL,
        parent_id  UUID REFERENCES edge_category(id) ON DELETE CASCADE,
        schema     JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_edge_types_name ON edge_types(name);",
    # Nodes. No CHECK (euler_left < euler_right): a subtree being moved is
    # parked at negated bounds for the duration of the transaction.
    """
    CREATE TABLE IF NOT EXISTS node (
        id          UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        tree_id     UUID NOT NULL REFERENCES tree(id) ON DELETE CASCADE,
        parent_id   UUID REFERENCES node(id) ON DELETE SET NULL,
        category_id UUID REFERENCES node_category(id) ON DELETE SET NULL,
        name        TEXT NOT NULL,
        position    INTEGER NOT NULL DEFAULT 0,
        props       JSONB NOT NULL DEFAULT '{}'::jsonb,
        euler_left  INTEGER NOT NULL,
        euler_right INTEGER NOT NULL,
        depth       INTEGER NOT NULL,
        created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
    """,
    "CREATE INDEX IF NOT EXISTS ix_node_tree_left_right ON node(tree_id, euler_left, euler_right);",
    "CREATE INDEX IF NOT EXISTS ix_node_tree_right ON node(tree_id, euler_right);",
    "CREATE INDEX IF NOT EXISTS ix_node_parent ON node(tree_id, parent_id, position);",
    "CREATE INDEX IF NOT EXISTS ix_node_depth ON node(tree_id, depth);",
    "CREATE INDEX IF NOT EXISTS ix_node_props ON node USING GIN (props jsonb_path_ops);",
    # Layers and edges
    """
    CREATE TABLE IF NOT EXISTS layer (
        id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name       TEXT NOT NULL,
        props      JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_layer_name ON layer(name);",
    """
    CREATE TABLE IF NOT EXISTS edge (
        id          UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name        TEXT NOT NULL,
        layer_id    UUID REFERENCES layer(id) ON DELETE CASCADE,
        a_tree_id   UUID REFERENCES tree(id) ON DELETE CASCADE,
        a_node_id   UUID REFERENCES node(id) ON DELETE CASCADE,
        b_tree_id   UUID REFERENCES tree(id) ON DELETE CASCADE,
        b_node_id   UUID REFERENCES node(id) ON DELETE CASCADE,
        category_id UUID REFERENCES edge_category(id) ON DELETE SET NULL,
        props       JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        CONSTRAINT edge_endpoints_order CHECK ((a_tree_id, a_node_id) <= (b_tree_id, b_node_id)),
        CONSTRAINT edge_no_self CHECK (NOT (a_tree_id = b_tree_id AND a_node_id = b_node_id))
    );
    """,
    "CREATE UNIQUE INDEX IF NOT EXISTS ux_edge_layer_pair ON edge(layer_id, a_tree_id, a_node_id, b_tree_id, b_node_id);",
    "CREATE INDEX IF NOT EXISTS ix_edge_layer_b ON edge(layer_id, b_tree_id, b_node_id);",
    # Type and schema references, added after the tables above first shipped
    "ALTER TABLE IF EXISTS tree ADD COLUMN IF NOT EXISTS props_schema UUID REFERENCES json_schemas(id) ON DELETE SET NULL;",
    "ALTER TABLE IF EXISTS layer ADD COLUMN IF NOT EXISTS props_schema UUID REFERENCES json_schemas(id) ON DELETE SET NULL;",
    "ALTER TABLE IF EXISTS node ADD COLUMN IF NOT EXISTS type_id UUID REFERENCES node_types(id) ON DELETE SET NULL;",
    "ALTER TABLE IF EXISTS edge ADD COLUMN IF NOT EXISTS type_id UUID REFERENCES edge_types(id) ON DELETE SET NULL;",
]

UPDATED_AT_TABLES = (
    "json_schemas",
    "tree",
    "node_category",
    "node_types",
    "edge_category",
    "edge_types",
    "node",
    "layer",
    "edge",
)


def init_postgres_db(db: PostgresDatabase) -> None:
    """Initialize all tree store tables if they don't exist."""
    with db.transaction() as cur:
        for statement in SCHEMA_STATEMENTS:
            cur.execute(statement)
        for table in UPDATED_AT_TABLES:
            cur.execute(f"DROP TRIGGER IF EXISTS trg_{table}_set_updated_at ON {table};")
            cur.execute(
                f"CREATE TRIGGER trg_{table}_set_updated_at BEFORE UPDATE ON {table} "
                f"FOR EACH ROW EXECUTE FUNCTION set_updated_at();"
            )
        cur.execute(
            "INSERT INTO app_info (name, version) VALUES (%s, %s) ON CONFLICT (name) DO NOTHING",
            (APP_NAME, APP_VERSION),
        )
    logger.info("[db_postgres] Tree store schema initialised")
