from fastapi import APIRouter, Depends, HTTPException, Response
from typing import List

from dependencies import get_tree_repository
from models import Tree, TreeCreateRequest, TreeUpdateRequest
from services_trees import TreeRepository

router = APIRouter(prefix="/api/trees", tags=["trees"])


@router.get("/", response_model=List[Tree])
def list_trees_endpoint(repo: TreeRepository = Depends(get_tree_repository)):
    return repo.list_trees()


@router.post("/", response_model=Tree, status_code=201)
def create_tree_endpoint(payload: TreeCreateRequest, repo: TreeRepository = Depends(get_tree_repository)):
    return repo.create_tree(payload.name.strip(), payload.props, payload.props_schema)


@router.get("/{tree_id}", response_model=Tree)
def get_tree_endpoint(tree_id: str, repo: TreeRepository = Depends(get_tree_repository)):
    tree = repo.get_tree(tree_id)
    if tree is None:
        raise HTTPException(status_code=404, detail="Tree not found")
    return tree


@router.put("/{tree_id}", response_model=Tree)
@router.patch("/{tree_id}", response_model=Tree)
def update_tree_endpoint(tree_id: str, payload: TreeUpdateRequest, repo: TreeRepository = Depends(get_tree_repository)):
    patch = payload.model_dump(exclude_unset=True)
    # props_schema may be cleared with null; the other fields may not.
    patch = {key: value for key, value in patch.items() if value is not None or key == "props_schema"}
    if "name" in patch:
        patch["name"] = patch["name"].strip()
    tree = repo.update_tree(tree_id, patch)
    if tree is None:
        raise HTTPException(status_code=404, detail="Tree not found")
    return tree


@router.delete("/{tree_id}", status_code=204)
def delete_tree_endpoint(tree_id: str, repo: TreeRepository = Depends(get_tree_repository)):
    if not repo.delete_tree(tree_id):
        raise HTTPException(status_code=404, detail="Tree not found")
    return Response(status_code=204)
