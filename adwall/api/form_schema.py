# FILE: adwall/api/form_schema.py

from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from adwall.schemas.form_schema import FieldError, FormSchema
from adwall.services import form_schema_service

router = APIRouter(prefix="/api/form-schema", tags=["form-schema"])


@router.get("", response_model=List[FormSchema])
async def all_form_schemas():
    return form_schema_service.list_schemas()


@router.get("/{schema_id}", response_model=FormSchema)
async def form_schema(schema_id: str):
    schema = form_schema_service.get_schema(schema_id)
    if not schema:
        raise HTTPException(status_code=404, detail="Form schema not found")
    return schema


@router.post("/{schema_id}/validate", response_model=List[FieldError])
async def validate_form(schema_id: str, payload: Dict[str, Any]):
    schema = form_schema_service.get_schema(schema_id)
    if not schema:
        raise HTTPException(status_code=404, detail="Form schema not found")
    return form_schema_service.validate(schema, payload)
