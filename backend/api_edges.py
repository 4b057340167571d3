from fastapi import APIRouter, Depends, HTTPException, Query, Response
from typing import List, Optional

from dependencies import get_edge_repository
from models import Edge, EdgeCreateRequest, EdgeUpdateRequest
from services_edges import EdgeRepository

router = APIRouter(prefix="/api/edges", tags=["edges"])


@router.get("/", response_model=List[Edge])
def list_edges_endpoint(
    layer_id: Optional[str] = Query(None),
    tree_id: Optional[str] = Query(None),
    node_id: Optional[str] = Query(None),
    repo: EdgeRepository = Depends(get_edge_repository),
):
    if tree_id and node_id:
        return repo.list_edges_for_node(tree_id, node_id)
    if layer_id and layer_id.strip():
        return repo.list_edges_by_layer(layer_id.strip())
    return repo.list_edges()


@router.post("/{layer_id}", response_model=Edge, status_code=201)
def create_edge_endpoint(layer_id: str, payload: EdgeCreateRequest, repo: EdgeRepository = Depends(get_edge_repository)):
    return repo.create_edge(
        layer_id,
        payload.name.strip(),
        source=(payload.source.tree_id, payload.source.node_id),
        target=(payload.target.tree_id, payload.target.node_id),
        category_id=payload.category_id,
        props=payload.props,
        type_id=payload.type_id,
    )


@router.get("/item/{edge_id}", response_model=Edge)
def get_edge_endpoint(edge_id: str, repo: EdgeRepository = Depends(get_edge_repository)):
    edge = repo.get_edge(edge_id)
    if edge is None:
        raise HTTPException(status_code=404, detail="Edge not found")
    return edge


@router.patch("/item/{edge_id}", response_model=Edge)
def update_edge_endpoint(edge_id: str, payload: EdgeUpdateRequest, repo: EdgeRepository = Depends(get_edge_repository)):
    patch = payload.model_dump(exclude_unset=True)
    patch = {key: value for key, value in patch.items() if value is not None or key in ("category_id", "type_id")}
    if not patch:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    edge = repo.update_edge(edge_id, patch)
    if edge is None:
        raise HTTPException(status_code=404, detail="Edge not found")
    return edge


@router.delete("/item/{edge_id}", status_code=204)
def delete_edge_endpoint(edge_id: str, repo: EdgeRepository = Depends(get_edge_repository)):
    if not repo.delete_edge(edge_id):
        raise HTTPException(status_code=404, detail="Edge not found")
    return Response(status_code=204)
