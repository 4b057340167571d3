from fastapi import APIRouter, Depends, HTTPException, Response
from typing import List

from dependencies import get_edge_repository, get_layer_repository
from models import Edge, Layer, LayerCreateRequest, LayerRenameRequest
from services_edges import EdgeRepository
from services_layers import LayerRepository

router = APIRouter(prefix="/api/layers", tags=["layers"])


@router.get("/", response_model=List[Layer])
def list_layers_endpoint(repo: LayerRepository = Depends(get_layer_repository)):
    return repo.list_layers()


@router.post("/", response_model=Layer, status_code=201)
def create_layer_endpoint(payload: LayerCreateRequest, repo: LayerRepository = Depends(get_layer_repository)):
    return repo.create_layer(payload.name.strip(), payload.props, payload.props_schema)


@router.get("/{layer_id}", response_model=Layer)
def get_layer_endpoint(layer_id: str, repo: LayerRepository = Depends(get_layer_repository)):
    layer = repo.get_layer(layer_id)
    if layer is None:
        raise HTTPException(status_code=404, detail="Layer not found")
    return layer


@router.put("/{layer_id}", response_model=Layer)
def rename_layer_endpoint(layer_id: str, payload: LayerRenameRequest, repo: LayerRepository = Depends(get_layer_repository)):
    layer = repo.rename_layer(layer_id, payload.name.strip())
    if layer is None:
        raise HTTPException(status_code=404, detail="Layer not found")
    return layer


@router.delete("/{layer_id}", status_code=204)
def delete_layer_endpoint(layer_id: str, repo: LayerRepository = Depends(get_layer_repository)):
    if not repo.delete_layer(layer_id):
        raise HTTPException(status_code=404, detail="Layer not found")
    return Response(status_code=204)


@router.get("/{layer_id}/edges", response_model=List[Edge])
def list_layer_edges_endpoint(layer_id: str, repo: EdgeRepository = Depends(get_edge_repository)):
    return repo.list_edges_by_layer(layer_id)
