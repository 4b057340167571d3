from fastapi import APIRouter, Depends, HTTPException, Query, Response
from typing import List, Optional

from dependencies import get_node_repository
from models import (
    Node,
    SubtreeNode,
    NodeCreateRequest,
    NodePatchRequest,
    NodeMoveRequest,
    NodeMoveResponse,
    CounterIncrementRequest,
)
from tree_errors import InvalidDepthError

router = APIRouter(prefix="/api/trees/{tree_id}/nodes", tags=["nodes"])


def _optional_id(value: Optional[str]) -> Optional[str]:
    # "", "null" and a missing value all mean "no parent".
    if value is None or value.strip() in ("", "null"):
        return None
    return value.strip()


def _parse_max_depth(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise InvalidDepthError(raw)


@router.post("/", response_model=Node, status_code=201)
def create_node_endpoint(tree_id: str, payload: NodeCreateRequest, repo=Depends(get_node_repository)):
    return repo.create_node(
        tree_id,
        payload.name.strip(),
        parent_id=_optional_id(payload.parent_id),
        props=payload.props,
        category_id=payload.category_id,
        position=payload.position,
        type_id=payload.type_id,
    )


@router.get("/", response_model=List[Node])
def list_children_endpoint(tree_id: str, parent_id: Optional[str] = Query(None), repo=Depends(get_node_repository)):
    return repo.list_children(tree_id, _optional_id(parent_id))


@router.get("/all", response_model=List[Node])
def list_all_nodes_endpoint(tree_id: str, repo=Depends(get_node_repository)):
    return repo.list_all_nodes(tree_id)


@router.get("/by-type/{type_value}", response_model=List[Node])
def list_by_type_endpoint(tree_id: str, type_value: str, repo=Depends(get_node_repository)):
    return repo.list_by_type(tree_id, type_value)


@router.get("/item/{node_id}", response_model=Node)
def get_node_endpoint(tree_id: str, node_id: str, repo=Depends(get_node_repository)):
    node = repo.get_node(tree_id, node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    return node


@router.patch("/item/{node_id}", response_model=Node)
def update_node_endpoint(tree_id: str, node_id: str, payload: NodePatchRequest, repo=Depends(get_node_repository)):
    patch = payload.model_dump(exclude_unset=True)
    # References may be cleared with null; the other fields may not.
    patch = {key: value for key, value in patch.items() if value is not None or key in ("category_id", "type_id")}
    if "name" in patch:
        patch["name"] = patch["name"].strip()
    if not patch:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    node = repo.update_node(tree_id, node_id, patch)
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    return node


@router.get("/item/{node_id}/path", response_model=List[Node])
def get_path_endpoint(tree_id: str, node_id: str, repo=Depends(get_node_repository)):
    return repo.get_path_to_root(tree_id, node_id)


@router.get("/item/{node_id}/subtree", response_model=List[SubtreeNode])
def get_subtree_endpoint(
    tree_id: str,
    node_id: str,
    max_depth: Optional[str] = Query(None),
    repo=Depends(get_node_repository),
):
    return repo.get_subtree(tree_id, node_id, _parse_max_depth(max_depth))


@router.post("/item/{node_id}/move", response_model=NodeMoveResponse)
def move_node_endpoint(tree_id: str, node_id: str, payload: NodeMoveRequest, repo=Depends(get_node_repository)):
    new_parent_id = _optional_id(payload.new_parent_id)
    if not repo.move_subtree(tree_id, node_id, new_parent_id):
        raise HTTPException(status_code=404, detail="Node not found")
    return NodeMoveResponse(node_id=node_id, new_parent_id=new_parent_id)


@router.delete("/item/{node_id}", status_code=204)
def delete_node_endpoint(tree_id: str, node_id: str, repo=Depends(get_node_repository)):
    if not repo.delete_subtree(tree_id, node_id):
        raise HTTPException(status_code=404, detail="Node not found")
    return Response(status_code=204)


@router.post("/item/{node_id}/counter", response_model=Node)
def increment_counter_endpoint(
    tree_id: str,
    node_id: str,
    payload: CounterIncrementRequest,
    repo=Depends(get_node_repository),
):
    counter = payload.counter.strip()
    if not counter:
        raise HTTPException(status_code=400, detail="counter is required")
    node = repo.increment_counter(tree_id, node_id, counter, payload.delta)
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    return node
