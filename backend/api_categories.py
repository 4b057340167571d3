"""
Node and edge category endpoints.
Both routers share the handlers below; only the repository kind differs.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from typing import Callable, List, Optional

from dependencies import get_edge_category_repository, get_node_category_repository
from models import Category, CategoryCreateRequest, CategoryUpdateRequest
from services_categories import CategoryRepository


def build_category_router(prefix: str, tag: str, get_repository: Callable[..., CategoryRepository], label: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])
    not_found = f"{label} not found"

    @router.get("/", response_model=List[Category])
    def list_categories_endpoint(
        parent_id: Optional[str] = Query(None),
        roots_only: bool = Query(False),
        repo: CategoryRepository = Depends(get_repository),
    ):
        return repo.list_categories(parent_id=parent_id, roots_only=roots_only)

    @router.post("/", response_model=Category, status_code=201)
    def create_category_endpoint(payload: CategoryCreateRequest, repo: CategoryRepository = Depends(get_repository)):
        return repo.create_category(payload.name.strip(), parent_ids=payload.parent_ids, schema=payload.schema_)

    @router.get("/by-name/{name}", response_model=Category)
    def get_category_by_name_endpoint(name: str, repo: CategoryRepository = Depends(get_repository)):
        category = repo.get_category_by_name(name)
        if category is None:
            raise HTTPException(status_code=404, detail=not_found)
        return category

    @router.get("/{category_id}", response_model=Category)
    def get_category_endpoint(category_id: str, repo: CategoryRepository = Depends(get_repository)):
        category = repo.get_category(category_id)
        if category is None:
            raise HTTPException(status_code=404, detail=not_found)
        return category

    @router.patch("/{category_id}", response_model=Category)
    def update_category_endpoint(
        category_id: str,
        payload: CategoryUpdateRequest,
        repo: CategoryRepository = Depends(get_repository),
    ):
        if payload.name is None and payload.schema_ is None and payload.parent_ids is None:
            raise HTTPException(status_code=400, detail="No valid fields to update")
        category = repo.update_category(
            category_id,
            name=payload.name.strip() if payload.name is not None else None,
            schema=payload.schema_,
            parent_ids=payload.parent_ids,
        )
        if category is None:
            raise HTTPException(status_code=404, detail=not_found)
        return category

    @router.delete("/{category_id}", status_code=204)
    def delete_category_endpoint(category_id: str, repo: CategoryRepository = Depends(get_repository)):
        if not repo.delete_category(category_id):
            raise HTTPException(status_code=404, detail=not_found)
        return Response(status_code=204)

    return router


node_categories_router = build_category_router(
    "/api/node-categories", "node-categories", get_node_category_repository, "Node category"
)
edge_categories_router = build_category_router(
    "/api/edge-categories", "edge-categories", get_edge_category_repository, "Edge category"
)
