from __future__ import annotations

from fastapi import APIRouter, Depends

from frp_manager.deps import get_audit_service, get_registry
from frp_manager.errors import unknown_operation
from frp_manager.protocol.operations import OperationRegistry
from frp_manager.services.audit_service import AuditService

router = APIRouter(tags=["logs"])


@router.get("/logs/{operation}")
async def list_logs(
    operation: str,
    registry: OperationRegistry = Depends(get_registry),
    audit_service: AuditService = Depends(get_audit_service),
):
    descriptor = registry.lookup(operation)
    if descriptor is None:
        raise unknown_operation(operation)
    entries = await audit_service.list_entries(descriptor.audit_channel)
    return [entry.to_dict() for entry in entries]
