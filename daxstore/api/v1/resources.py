"""
Resource endpoints.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Query, Response, status
from pydantic import BaseModel, Field

from daxstore.api.deps import CallerId, Records
from daxstore.schemas.resources import MAX_ID_LENGTH, Resource, ResourceWrite

router = APIRouter()


class ResourceBody(BaseModel):
    """Body of a save request; the kind comes from the path."""

    id: Optional[str] = Field(None, min_length=1, max_length=MAX_ID_LENGTH)
    payload: Dict[str, Any]


@router.put("/{kind}", response_model=Resource)
async def save_resource(
    kind: str,
    caller_id: CallerId,
    records: Records,
    body: ResourceBody = Body(...),
):
    """Create a resource owned by the caller, or update an existing one."""
    return await records.save(
        ResourceWrite(kind=kind, id=body.id, payload=body.payload),
        owner_id=caller_id,
    )


@router.get("/{kind}", response_model=List[Resource])
async def list_resources(
    kind: str,
    caller_id: CallerId,
    records: Records,
    type: Optional[str] = Query(None, description="Filter on the kind's type column"),
):
    """List resources of a kind owned by the caller."""
    return await records.get_all(caller_id, kind, type_filter=type)


@router.get("/{kind}/{resource_id}", response_model=Resource)
async def get_resource(
    kind: str,
    resource_id: str,
    caller_id: CallerId,
    records: Records,
):
    """Get one resource the caller may read."""
    return await records.get(kind, resource_id, caller_id)


@router.delete("/{kind}/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    kind: str,
    resource_id: str,
    caller_id: CallerId,
    records: Records,
):
    """Delete a resource and its ACL entries."""
    await records.delete(kind, resource_id, caller_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
