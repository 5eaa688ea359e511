from __future__ import annotations

from fastapi import APIRouter, Depends

from frp_manager.config import Settings
from frp_manager.deps import get_registry, get_settings
from frp_manager.observability.metrics import get_manager_metrics
from frp_manager.protocol.envelope import PLUGIN_PROTOCOL_VERSION
from frp_manager.protocol.operations import OperationRegistry
from frp_manager.version import get_manager_version

router = APIRouter(tags=["ops"])


@router.get("/health")
async def health(
    settings: Settings = Depends(get_settings),
    registry: OperationRegistry = Depends(get_registry),
):
    return {
        "ok": True,
        "version": get_manager_version(),
        "protocol_version": PLUGIN_PROTOCOL_VERSION,
        "audit_backend": settings.audit_backend,
        "operations": [operation.value for operation in registry.operations()],
    }


@router.get("/version")
async def version():
    return {
        "protocol_version": PLUGIN_PROTOCOL_VERSION,
        "manager_version": get_manager_version(),
    }


@router.get("/metrics")
async def metrics():
    return get_manager_metrics().snapshot()
