# Pydantic models for the tree store API.
from models.node import (
    Node,
    SubtreeNode,
    NodeCreateRequest,
    NodePatchRequest,
    NodeMoveRequest,
    NodeMoveResponse,
    CounterIncrementRequest,
)
from models.tree import Tree, TreeCreateRequest, TreeUpdateRequest
from models.category import Category, CategoryCreateRequest, CategoryUpdateRequest
from models.layer import Layer, LayerCreateRequest, LayerRenameRequest
from models.edge import Edge, EdgeEndpoint, EdgeCreateRequest, EdgeUpdateRequest
from models.entity_type import EntityType, EntityTypeCreateRequest, EntityTypeUpdateRequest
from models.json_schema import JsonSchema, JsonSchemaCreateRequest, JsonSchemaUpdateRequest
from models.app_info import AppInfo, AppInfoCreateRequest, AppInfoUpdateRequest

__all__ = [
    "Node",
    "SubtreeNode",
    "NodeCreateRequest",
    "NodePatchRequest",
    "NodeMoveRequest",
    "NodeMoveResponse",
    "CounterIncrementRequest",
    "Tree",
    "TreeCreateRequest",
    "TreeUpdateRequest",
    "Category",
    "CategoryCreateRequest",
    "CategoryUpdateRequest",
    "Layer",
    "LayerCreateRequest",
    "LayerRenameRequest",
    "Edge",
    "EdgeEndpoint",
    "EdgeCreateRequest",
    "EdgeUpdateRequest",
    "EntityType",
    "EntityTypeCreateRequest",
    "EntityTypeUpdateRequest",
    "JsonSchema",
    "JsonSchemaCreateRequest",
    "JsonSchemaUpdateRequest",
    "AppInfo",
    "AppInfoCreateRequest",
    "AppInfoUpdateRequest",
]
