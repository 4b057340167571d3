# Tree node models: stored rows, subtree rows and request payloads.
from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class Node(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    tree_id: Optional[str] = None
    parent_id: Optional[str] = None
    category_id: Optional[str] = None
    type_id: Optional[str] = None
    name: str
    position: int = 0
    props: Dict[str, Any] = Field(default_factory=dict)
    euler_left: int
    euler_right: int
    depth: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SubtreeNode(Node):
    # Hops from the node the subtree (or path) was requested for.
    relative_depth: int = 0


class NodeCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    parent_id: Optional[str] = None
    position: Optional[int] = None
    props: Optional[Dict[str, Any]] = None
    category_id: Optional[str] = None
    type_id: Optional[str] = None


class NodePatchRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    position: Optional[int] = None
    category_id: Optional[str] = None
    props: Optional[Dict[str, Any]] = None
    type_id: Optional[str] = None


class NodeMoveRequest(BaseModel):
    new_parent_id: Optional[str] = None


class NodeMoveResponse(BaseModel):
    status: str = "ok"
    action: str = "move"
    node_id: str
    new_parent_id: Optional[str] = None


class CounterIncrementRequest(BaseModel):
    counter: str = Field(min_length=1)
    delta: StrictInt = 1
