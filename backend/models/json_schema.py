# Named JSON schemas referenced by trees and layers (props_schema).
from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


class JsonSchema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    name: str
    schema_: Dict[str, Any] = Field(default_factory=dict, alias="schema")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JsonSchemaCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    schema_: Optional[Dict[str, Any]] = Field(default=None, alias="schema")


class JsonSchemaUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    schema_: Optional[Dict[str, Any]] = Field(default=None, alias="schema")
