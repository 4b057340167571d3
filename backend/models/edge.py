# Typed edge models. An edge joins two nodes (possibly in different trees).
from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


class Edge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    layer_id: Optional[str] = None
    a_tree_id: Optional[str] = None
    a_node_id: Optional[str] = None
    b_tree_id: Optional[str] = None
    b_node_id: Optional[str] = None
    category_id: Optional[str] = None
    type_id: Optional[str] = None
    props: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EdgeEndpoint(BaseModel):
    tree_id: str = Field(min_length=1)
    node_id: str = Field(min_length=1)


class EdgeCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    source: EdgeEndpoint
    target: EdgeEndpoint
    category_id: Optional[str] = None
    type_id: Optional[str] = None
    props: Optional[Dict[str, Any]] = None


class EdgeUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    layer_id: Optional[str] = Field(default=None, min_length=1)
    category_id: Optional[str] = None
    type_id: Optional[str] = None
    props: Optional[Dict[str, Any]] = None
