from __future__ import annotations

from frp_manager.audit.entry import AuditSink
from frp_manager.audit.file_sink import JsonLinesAuditSink
from frp_manager.audit.memory_sink import InMemoryAuditSink
from frp_manager.audit.sqlite_sink import SqliteAuditSink
from frp_manager.config import Settings


async def build_audit_sink(settings: Settings) -> AuditSink:
    if settings.audit_backend == "sqlite":
        return await SqliteAuditSink.open(settings.db_path)
    if settings.audit_backend == "file":
        return JsonLinesAuditSink(settings.log_dir)
    if settings.audit_backend == "memory":
        return InMemoryAuditSink()
    raise RuntimeError(f"Unsupported audit backend: {settings.audit_backend}")
