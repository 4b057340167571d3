"""
FastAPI dependency providers.

The database and repositories are created once by main.py and kept on
app.state; routers only ever receive them through these functions, so tests
swap them with app.dependency_overrides.
"""
from fastapi import Request

from config import TREE_STORE_BACKEND
from db_postgres import PostgresDatabase
from services_app_info import AppInfoRepository
from services_categories import CategoryRepository
from services_edges import EdgeRepository
from services_layers import LayerRepository
from services_node_memory import InMemoryNodeRepository
from services_node_repository import NodeRepository
from services_trees import TreeRepository
from services_json_schemas import JsonSchemaRepository
from services_types import TypeRepository


def build_node_repository(db: PostgresDatabase, backend: str = TREE_STORE_BACKEND):
    if backend == "memory":
        return InMemoryNodeRepository()
    if backend == "postgres":
        return NodeRepository(db)
    raise ValueError(f"Unknown TREE_STORE_BACKEND: {backend!r} (expected 'postgres' or 'memory')")


def get_database(request: Request) -> PostgresDatabase:
    return request.app.state.db


def get_node_repository(request: Request):
    return request.app.state.node_repository


def get_tree_repository(request: Request) -> TreeRepository:
    return TreeRepository(get_database(request))


def get_layer_repository(request: Request) -> LayerRepository:
    return LayerRepository(get_database(request))


def get_edge_repository(request: Request) -> EdgeRepository:
    return EdgeRepository(get_database(request))


def get_node_category_repository(request: Request) -> CategoryRepository:
    return CategoryRepository(get_database(request), kind="node")


def get_edge_category_repository(request: Request) -> CategoryRepository:
    return CategoryRepository(get_database(request), kind="edge")


def get_node_type_repository(request: Request) -> TypeRepository:
    return TypeRepository(get_database(request), kind="node")


def get_edge_type_repository(request: Request) -> TypeRepository:
    return TypeRepository(get_database(request), kind="edge")


def get_json_schema_repository(request: Request) -> JsonSchemaRepository:
    return JsonSchemaRepository(get_database(request))


def get_app_info_repository(request: Request) -> AppInfoRepository:
    return AppInfoRepository(get_database(request))
