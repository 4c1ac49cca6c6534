"""
Access control endpoints.
"""

from typing import List

from fastapi import APIRouter

from daxstore.api.deps import CallerId, Records
from daxstore.schemas.acl import ACLEntryResponse, ACLUpdate

router = APIRouter()


@router.get("/{kind}/{resource_id}", response_model=List[ACLEntryResponse])
async def get_acl(
    kind: str,
    resource_id: str,
    caller_id: CallerId,
    records: Records,
):
    """ACL entries on a resource. The caller must be able to read it."""
    await records.get(kind, resource_id, caller_id)
    entries = await records.permissions.get_permissions(resource_id, kind)
    return [ACLEntryResponse.model_validate(entry) for entry in entries]


@router.put("/{kind}/{resource_id}", response_model=ACLEntryResponse)
async def set_acl(
    kind: str,
    resource_id: str,
    data: ACLUpdate,
    caller_id: CallerId,
    records: Records,
):
    """Replace one user's permissions on a resource. Requires share."""
    entry = await records.permissions.set_permissions(
        resource_id=resource_id,
        resource_type=kind,
        user_id=data.user_id,
        permissions=data.permissions,
        granted_by=caller_id,
    )
    return ACLEntryResponse.model_validate(entry)
