# Layer models. Edges live inside a layer.
from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


class Layer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    props: Dict[str, Any] = Field(default_factory=dict)
    props_schema: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LayerCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    props: Optional[Dict[str, Any]] = None
    props_schema: Optional[str] = None


class LayerRenameRequest(BaseModel):
    name: str = Field(min_length=1)
