# Tree (named root collection) models.
from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


class Tree(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    props: Dict[str, Any] = Field(default_factory=dict)
    props_schema: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TreeCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    props: Optional[Dict[str, Any]] = None
    props_schema: Optional[str] = None


class TreeUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    props: Optional[Dict[str, Any]] = None
    props_schema: Optional[str] = None
