from fastapi import APIRouter, Depends, HTTPException, Response
from typing import List

from dependencies import get_json_schema_repository
from models import JsonSchema, JsonSchemaCreateRequest, JsonSchemaUpdateRequest
from services_json_schemas import JsonSchemaRepository

router = APIRouter(prefix="/api/json-schemas", tags=["json-schemas"])


@router.get("/", response_model=List[JsonSchema])
def list_schemas_endpoint(repo: JsonSchemaRepository = Depends(get_json_schema_repository)):
    return repo.list_schemas()


@router.post("/", response_model=JsonSchema, status_code=201)
def create_schema_endpoint(payload: JsonSchemaCreateRequest, repo: JsonSchemaRepository = Depends(get_json_schema_repository)):
    return repo.create_schema(payload.name.strip(), payload.schema_)


@router.get("/{schema_id}", response_model=JsonSchema)
def get_schema_endpoint(schema_id: str, repo: JsonSchemaRepository = Depends(get_json_schema_repository)):
    schema = repo.get_schema(schema_id)
    if schema is None:
        raise HTTPException(status_code=404, detail="JSON schema not found")
    return schema


@router.put("/{schema_id}", response_model=JsonSchema)
@router.patch("/{schema_id}", response_model=JsonSchema)
def update_schema_endpoint(
    schema_id: str,
    payload: JsonSchemaUpdateRequest,
    repo: JsonSchemaRepository = Depends(get_json_schema_repository),
):
    if payload.name is None and payload.schema_ is None:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    schema = repo.update_schema(
        schema_id,
        name=payload.name.strip() if payload.name is not None else None,
        schema=payload.schema_,
    )
    if schema is None:
        raise HTTPException(status_code=404, detail="JSON schema not found")
    return schema


@router.delete("/{schema_id}", status_code=204)
def delete_schema_endpoint(schema_id: str, repo: JsonSchemaRepository = Depends(get_json_schema_repository)):
    if not repo.delete_schema(schema_id):
        raise HTTPException(status_code=404, detail="JSON schema not found")
    return Response(status_code=204)
