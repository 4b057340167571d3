"""
Node and edge type endpoints, built from one handler set like the category routers.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from typing import Callable, List, Optional

from dependencies import get_edge_type_repository, get_node_type_repository
from models import EntityType, EntityTypeCreateRequest, EntityTypeUpdateRequest
from services_types import TypeRepository


def build_type_router(prefix: str, tag: str, get_repository: Callable[..., TypeRepository], label: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])
    not_found = f"{label} not found"

    @router.get("/", response_model=List[EntityType])
    def list_types_endpoint(
        parent_id: Optional[str] = Query(None),
        repo: TypeRepository = Depends(get_repository),
    ):
        return repo.list_types(parent_id=parent_id)

    @router.post("/", response_model=EntityType, status_code=201)
    def create_type_endpoint(payload: EntityTypeCreateRequest, repo: TypeRepository = Depends(get_repository)):
        return repo.create_type(payload.name.strip(), parent_id=payload.parent_id, schema=payload.schema_)

    @router.get("/{type_id}", response_model=EntityType)
    def get_type_endpoint(type_id: str, repo: TypeRepository = Depends(get_repository)):
        entity_type = repo.get_type(type_id)
        if entity_type is None:
            raise HTTPException(status_code=404, detail=not_found)
        return entity_type

    @router.patch("/{type_id}", response_model=EntityType)
    def update_type_endpoint(type_id: str, payload: EntityTypeUpdateRequest, repo: TypeRepository = Depends(get_repository)):
        patch = payload.model_dump(exclude_unset=True)
        # parent_id may be cleared with null; the other fields may not.
        patch = {key: value for key, value in patch.items() if value is not None or key == "parent_id"}
        if "schema_" in patch:
            patch["schema"] = patch.pop("schema_")
        if "name" in patch:
            patch["name"] = patch["name"].strip()
        if not patch:
            raise HTTPException(status_code=400, detail="No valid fields to update")
        entity_type = repo.update_type(type_id, patch)
        if entity_type is None:
            raise HTTPException(status_code=404, detail=not_found)
        return entity_type

    @router.delete("/{type_id}", status_code=204)
    def delete_type_endpoint(type_id: str, repo: TypeRepository = Depends(get_repository)):
        if not repo.delete_type(type_id):
            raise HTTPException(status_code=404, detail=not_found)
        return Response(status_code=204)

    return router


node_types_router = build_type_router("/api/node-types", "node-types", get_node_type_repository, "Node type")
edge_types_router = build_type_router("/api/edge-types", "edge-types", get_edge_type_repository, "Edge type")
