from __future__ import annotations

from frp_manager.config import Settings
from frp_manager.protocol.operations import OperationRegistry
from frp_manager.services.audit_service import AuditService
from frp_manager.services.dispatcher import Dispatcher

_settings: Settings | None = None
_dispatcher: Dispatcher | None = None


def set_dependencies(settings: Settings, dispatcher: Dispatcher) -> None:
    global _settings, _dispatcher
    _settings = settings
    _dispatcher = dispatcher


def clear_dependencies() -> None:
    global _settings, _dispatcher
    _settings = None
    _dispatcher = None


def get_settings() -> Settings:
    if _settings is None:
        raise RuntimeError("Settings not initialized")
    return _settings


def get_dispatcher() -> Dispatcher:
    if _dispatcher is None:
        raise RuntimeError("Dispatcher not initialized")
    return _dispatcher


def get_registry() -> OperationRegistry:
    return get_dispatcher().registry


def get_audit_service() -> AuditService:
    return get_dispatcher().audit_service
